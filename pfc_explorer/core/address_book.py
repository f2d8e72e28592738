"""Address book entries and address groups."""

from dataclasses import dataclass
from typing import Optional

from .blocks import parse_blocks
from .byte_codec import decode_text
from .mail_message import LINE_SEPARATOR
from .record import Record

EMAIL_DELIMITER = "\r\n"

ADDRESS_FIELDS = {
    1: "first_name",
    2: "raw_last_name",
    3: "email",
    4: "remarks",
}

GROUP_NAME_ID = 1
GROUP_EMAILS_ID = 2


def _iter_payloads(content: bytes):
    """Yield (subitem id, payload) for non-empty subitems, in record order."""
    for block in parse_blocks(content):
        for item in block.subitems():
            if item.payload:
                yield item.item_id, item.payload


@dataclass(frozen=True)
class AddressEntry:
    """
    Address book entry.

    last_name deliberately returns the first name: that is what the
    cabinet viewer has always shown for this field. The stored last name
    is kept in raw_last_name.
    """

    first_name: Optional[str] = None
    raw_last_name: Optional[str] = None
    email: Optional[str] = None
    remarks: Optional[str] = None

    @classmethod
    def from_record(cls, record: Record) -> "AddressEntry":
        return cls.from_content(record.content)

    @classmethod
    def from_content(cls, content: bytes) -> "AddressEntry":
        """
        Raises:
            TruncatedSubItemError: If a block or subitem is corrupt
        """
        fields = {}
        for item_id, payload in _iter_payloads(content):
            if item_id in ADDRESS_FIELDS:
                fields[ADDRESS_FIELDS[item_id]] = decode_text(payload)
        return cls(**fields)

    @property
    def last_name(self) -> Optional[str]:
        return self.first_name

    def head_string(self) -> str:
        return (f"First Name: {self.first_name}{LINE_SEPARATOR}"
                f"Last Name: {self.raw_last_name}")

    def text_string(self) -> str:
        return self.email or ""


def split_emails(text: str) -> list[str]:
    """Split a CRLF-delimited address list; an unterminated tail is kept."""
    emails = text.split(EMAIL_DELIMITER)
    if emails and emails[-1] == "":
        emails.pop()
    return emails


@dataclass(frozen=True)
class AddressGroup:
    """Named group of email addresses."""

    group_name: Optional[str] = None
    emails: tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: Record) -> "AddressGroup":
        return cls.from_content(record.content)

    @classmethod
    def from_content(cls, content: bytes) -> "AddressGroup":
        """
        Raises:
            TruncatedSubItemError: If a block or subitem is corrupt
        """
        group_name = None
        emails: list[str] = []
        for item_id, payload in _iter_payloads(content):
            if item_id == GROUP_NAME_ID:
                group_name = decode_text(payload)
            elif item_id == GROUP_EMAILS_ID:
                emails.extend(split_emails(decode_text(payload)))
        return cls(group_name=group_name, emails=tuple(emails))

    def head_string(self) -> str:
        return f"Group Name: {self.group_name}{LINE_SEPARATOR}"

    def text_string(self) -> str:
        return "".join(email + LINE_SEPARATOR for email in self.emails)
