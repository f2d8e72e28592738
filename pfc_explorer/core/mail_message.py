"""Mail message reconstruction from cabinet data records."""

import logging
import re
import zlib
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional

from .blocks import parse_blocks
from .byte_codec import decode_text, read_cstring, read_uint16_or_zero
from .dates import format_header_date, parse_mail_date
from .errors import DecompressionError
from .record import Record

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"

# Separator printed ahead of the header block in text views
HEADER_LINE = "----------------------- Headers --------------------------------"

# Marker that opens an embedded header in legacy body text
HEADER_MARK = "----- Headers -----"
HEADER_MARK_END = "-----\r\n"

# Line break inside v7 header text
V7_LINE_BREAK = 0x7f

# Attachment name starts this far into its payload
ATTACHMENT_NAME_OFFSET = 14

EXTENDED_TYPE_ID = 12
EXTENDED_DATA_ID = 13


class ExtendedType(IntEnum):
    """Meaning of an id-13 subitem, announced by the preceding id-12 subitem."""
    LEGACY_TEXT = 0
    ATTACHMENT = 1
    V7_HEADER = 5
    V7_BODY = 256
    V7_HEADER_START = 257
    V7_HEADER_END = 260


# Standard subitem id -> MailMessage field
STANDARD_FIELDS = {
    5: "date_string",
    6: "sender",
    7: "to",
    8: "cc",
    9: "bcc",
    10: "subject",
    11: "screen_name",
    16: "reply_to",
    17: "recipient",
}
CHECK_ID = 3

# Tokens rewritten by body_text() outside of an <html> document
_BODY_TOKENS = re.compile(r'<br>|<html>|</html>|&nbsp;|&amp;|&lt;|&gt;', re.IGNORECASE)
_TOKEN_TEXT = {
    "<br>": LINE_SEPARATOR,
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
}


class V7BodyInflater:
    """
    Raw-deflate stream shared by the compressed body chunks of one message.

    Chunks are consecutive pieces of a single stream, so one instance must
    be fed every chunk of a record in order, and never reused for another
    record.
    """

    def __init__(self):
        self._stream = zlib.decompressobj(-zlib.MAX_WBITS)

    def inflate(self, chunk: bytes) -> bytes:
        """
        Raises:
            DecompressionError: If the chunk is not valid deflate data
        """
        try:
            return self._stream.decompress(chunk)
        except zlib.error as e:
            raise DecompressionError(f"Invalid compressed body data: {e}") from e


@dataclass(frozen=True)
class MailMessage:
    """
    Email message decoded from a mail data record.

    Attributes:
        date_string: Date exactly as stored
        sender: From address (falls back to screen_name)
        to: To addresses
        cc: Cc addresses
        bcc: Bcc addresses
        subject: Subject line
        screen_name: Account screen name
        reply_to: Reply-To address
        recipient: Recipient address
        check: Check digest bytes
        body: Body text, legacy or inflated v7
        embedded_header: Header text captured from the record, if any
        attachment: Attachment file name
        errors: Decompression failures met while decoding
    """

    date_string: Optional[str] = None
    sender: Optional[str] = None
    to: Optional[str] = None
    cc: Optional[str] = None
    bcc: Optional[str] = None
    subject: Optional[str] = None
    screen_name: Optional[str] = None
    reply_to: Optional[str] = None
    recipient: Optional[str] = None
    check: Optional[bytes] = None
    body: str = ""
    embedded_header: str = ""
    attachment: Optional[str] = None
    errors: tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: Record) -> "MailMessage":
        return cls.from_content(record.content)

    @classmethod
    def from_content(cls, content: bytes) -> "MailMessage":
        """
        Decode a mail data record.

        Raises:
            TruncatedSubItemError: If a block or subitem is corrupt
        """
        fields: dict = {}
        body_parts: list[str] = []
        header_parts: list[str] = []
        errors: list[str] = []

        inflater = V7BodyInflater()
        in_v7_header = False
        legacy_header = False
        first_v7_chunk = True

        for block in parse_blocks(content):
            pending_type: Optional[int] = None

            for item in block.subitems():
                data = item.payload

                if data:
                    if item.item_id in STANDARD_FIELDS:
                        fields[STANDARD_FIELDS[item.item_id]] = decode_text(data)
                    elif item.item_id == CHECK_ID:
                        fields["check"] = data

                if item.item_id == EXTENDED_TYPE_ID:
                    pending_type = read_uint16_or_zero(data, 0) if len(data) >= 2 else None
                    continue
                if item.item_id != EXTENDED_DATA_ID:
                    continue

                if pending_type == ExtendedType.LEGACY_TEXT:
                    if not in_v7_header:
                        text = decode_text(data)
                        if HEADER_MARK in text:
                            legacy_header = True
                            header_parts.append(_text_after_header_mark(text))
                        elif legacy_header:
                            # Once the header mark is seen, later text stays header.
                            header_parts.append(text)
                        else:
                            body_parts.append(text)

                elif pending_type == ExtendedType.ATTACHMENT:
                    fields["attachment"] = read_cstring(data, ATTACHMENT_NAME_OFFSET)

                elif pending_type == ExtendedType.V7_HEADER:
                    header_parts.append(_v7_text(data))

                elif pending_type == ExtendedType.V7_BODY:
                    if first_v7_chunk:
                        first_v7_chunk = False
                    else:
                        try:
                            body_parts.append(decode_text(inflater.inflate(data)))
                        except DecompressionError as e:
                            logger.warning(f"Mail body chunk skipped: {e}")
                            errors.append(str(e))
                            body_parts.append(f"{LINE_SEPARATOR}[decompression error: {e}]")

                elif pending_type == ExtendedType.V7_HEADER_START:
                    in_v7_header = True

                elif pending_type == ExtendedType.V7_HEADER_END:
                    in_v7_header = False

                pending_type = None

        if fields.get("sender") is None:
            fields["sender"] = fields.get("screen_name")

        return cls(
            body="".join(body_parts),
            embedded_header="".join(header_parts),
            errors=tuple(errors),
            **fields,
        )

    @property
    def is_html(self) -> bool:
        """True if the body contains an <html> tag."""
        return "<html>" in self.body.lower()

    @property
    def date(self) -> Optional[datetime]:
        """Parsed date, or None if date_string matches no known layout."""
        return parse_mail_date(self.date_string)

    @property
    def header_date(self) -> str:
        """Header-formatted date, or the raw date string if unparseable."""
        date = self.date
        if date is not None:
            return format_header_date(date)
        return self.date_string or ""

    @property
    def mail_header(self) -> str:
        """Embedded header, or a Date/To/From/Subject header built from fields."""
        if self.embedded_header.strip():
            return self.embedded_header

        lines = [
            f"Date: {self.header_date}",
            f"To: {self.to or ''}",
            f"From: {self.sender or ''}",
            f"Subject: {self.subject or ''}",
        ]
        return LINE_SEPARATOR.join(lines) + LINE_SEPARATOR

    @property
    def body_text(self) -> str:
        """
        Body with display markup converted to plain text.

        <BR> becomes a line break and &nbsp; &amp; &lt; &gt; become their
        characters, except inside an <html>...</html> document.
        """
        result = []
        in_html = False
        pos = 0

        for match in _BODY_TOKENS.finditer(self.body):
            token = match.group(0).lower()
            result.append(self.body[pos:match.start()])
            pos = match.end()

            if in_html:
                if token == "</html>":
                    in_html = False
                result.append(match.group(0))
            elif token == "<html>":
                in_html = True
                result.append(match.group(0))
            elif token in _TOKEN_TEXT:
                result.append(_TOKEN_TEXT[token])
            else:
                result.append(match.group(0))

        result.append(self.body[pos:])
        return "".join(result)

    def head_string(self, outgoing: bool = False) -> str:
        """Short summary header for display."""
        lines = [f"Date: {self.date_string or ''}"]
        if outgoing:
            lines.append(f"To: {self.to or ''}")
        else:
            lines.append(f"From: {self.sender or ''}")
        lines.append(f"Subject: {self.subject or ''}")
        text = LINE_SEPARATOR.join(lines) + LINE_SEPARATOR
        if self.attachment is not None:
            text += f"Attachment: {self.attachment}"
        return text

    def text_string(self, show_header: bool = False) -> str:
        """Body text for display, optionally followed by the full header."""
        text = self.body_text + LINE_SEPARATOR
        if show_header:
            text += LINE_SEPARATOR + HEADER_LINE + LINE_SEPARATOR
            text += self.mail_header + LINE_SEPARATOR
        return text


def _text_after_header_mark(text: str) -> str:
    """Return the text following the header mark line."""
    pos = text.find(HEADER_MARK)
    end = text.find(HEADER_MARK_END, pos)
    if end < 0:
        return ""
    return text[end + len(HEADER_MARK_END):]


def _v7_text(data: bytes) -> str:
    return decode_text(data).replace(chr(V7_LINE_BREAK), LINE_SEPARATOR)
