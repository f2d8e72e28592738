"""Cabinet record classification.

Every cabinet entry is either an envelope or a data record. Envelopes are
fixed-size structural records (folders, or links to a data record) that
carry the pointers forming the folder tree. Data records start with a
block marker and hold mail, address book or favorite content.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .blocks import BLOCK_START_MARK
from .byte_codec import read_cstring, read_uint16_or_zero, read_uint32_or_zero

logger = logging.getLogger(__name__)

ENVELOPE_SIZE = 126

# Pointer value meaning "no record"
NO_POINTER = 0

# Mail envelope flag bits
MAIL_SEEN = 0x01
MAIL_SENT = 0x04

# Envelope field offsets
KIND_OFFSET = 0
FOLDER_BITS_OFFSET = 2
MAIL_FLAGS_OFFSET = 14
LABEL_OFFSET = 18
LABEL_COLUMN_END = 98
POINTER_OFFSETS = {
    "data": 106,
    "next": 110,
    "prev": 114,
    "parent": 118,
    "child": 122,
}

FOLDER_BIT = 0x0001
SYSTEM_FOLDER_BIT = 0x0100

# First subitem of a data record: id at 8, type at 10, payload at 11
DATA_FIRST_ID_OFFSET = 8
DATA_FIRST_TYPE_OFFSET = 10
DATA_FIRST_VALUE_OFFSET = 11


class RecordType(Enum):
    UNKNOWN = 0
    FOLDER = 1
    FAVORITE_ENVELOPE = 2
    FILE_FOLDER = 3
    FILE_ENVELOPE = 6
    FLASH_ENVELOPE = 9
    MAIL_ENVELOPE = 12
    ADDRESS_ENVELOPE = 17
    GROUP_ENVELOPE = 18
    POST_ENVELOPE = 20
    MAIL_DATA = 100
    ADDRESS_DATA = 101


# Envelope kind code -> record type
ENVELOPE_KINDS = {
    2: RecordType.FAVORITE_ENVELOPE,
    3: RecordType.FILE_FOLDER,
    4: RecordType.FILE_FOLDER,
    5: RecordType.FILE_ENVELOPE,
    6: RecordType.FILE_ENVELOPE,
    9: RecordType.FLASH_ENVELOPE,
    7: RecordType.MAIL_ENVELOPE,
    8: RecordType.MAIL_ENVELOPE,
    12: RecordType.MAIL_ENVELOPE,
    14: RecordType.POST_ENVELOPE,
    15: RecordType.POST_ENVELOPE,
    20: RecordType.POST_ENVELOPE,
    17: RecordType.ADDRESS_ENVELOPE,
    18: RecordType.GROUP_ENVELOPE,
}


@dataclass(frozen=True)
class RecordPointers:
    """Index pointers held by an envelope. Zero means no pointer."""
    data: int = NO_POINTER
    next: int = NO_POINTER
    prev: int = NO_POINTER
    parent: int = NO_POINTER
    child: int = NO_POINTER

    def target(self, name: str) -> Optional[int]:
        """Return the pointer value, or None for the sentinel."""
        value = getattr(self, name)
        return value if value != NO_POINTER else None

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in POINTER_OFFSETS}


@dataclass(frozen=True)
class Record:
    """One decoded cabinet entry."""
    content: bytes
    index: int = 0
    address: int = 0
    record_type: RecordType = RecordType.UNKNOWN
    is_envelope: bool = False
    is_folder: bool = False
    is_system_folder: bool = False
    flags: int = 0
    pointers: RecordPointers = field(default_factory=RecordPointers)

    @property
    def length(self) -> int:
        return len(self.content)

    @property
    def is_seen(self) -> bool:
        return bool(self.flags & MAIL_SEEN)

    @property
    def is_outgoing(self) -> bool:
        return bool(self.flags & MAIL_SENT)

    @property
    def is_data(self) -> bool:
        return self.record_type in (RecordType.MAIL_DATA, RecordType.ADDRESS_DATA)

    @property
    def label(self) -> str:
        """Envelope label, or empty string if not an envelope."""
        if not self.is_envelope:
            return ""
        return read_cstring(self.content, LABEL_OFFSET, len(self.content) - LABEL_OFFSET)

    def __str__(self) -> str:
        return self.label


def decode_record(content: bytes, index: int = 0, address: int = 0) -> Record:
    """
    Classify raw record content and extract its envelope fields.

    Never raises: fields beyond the end of short records read as zero.

    Args:
        content: Raw record bytes
        index: Sequential position of the record in the cabinet
        address: File offset the record was read from

    Returns:
        Record with type, flags and pointers filled in
    """
    content = bytes(content)

    if content[:4] == BLOCK_START_MARK:
        return Record(
            content=content,
            index=index,
            address=address,
            record_type=_classify_data(content),
        )

    if len(content) == ENVELOPE_SIZE:
        return _decode_envelope(content, index, address)

    return Record(content=content, index=index, address=address)


def _classify_data(content: bytes) -> RecordType:
    """Sniff the first subitem to tell mail data from address data."""
    first_id = read_uint16_or_zero(content, DATA_FIRST_ID_OFFSET)
    if first_id != 1 or len(content) <= DATA_FIRST_TYPE_OFFSET:
        return RecordType.UNKNOWN

    type_code = content[DATA_FIRST_TYPE_OFFSET]
    if type_code == 2 and read_uint16_or_zero(content, DATA_FIRST_VALUE_OFFSET) == 0:
        return RecordType.MAIL_DATA
    if type_code == 5:
        return RecordType.ADDRESS_DATA
    return RecordType.UNKNOWN


def _decode_envelope(content: bytes, index: int, address: int) -> Record:
    kind = read_uint16_or_zero(content, KIND_OFFSET)
    folder_bits = read_uint16_or_zero(content, FOLDER_BITS_OFFSET)

    is_folder = bool(folder_bits & FOLDER_BIT)
    record_type = RecordType.FOLDER if is_folder else RecordType.UNKNOWN
    record_type = ENVELOPE_KINDS.get(kind, record_type)

    flags = content[MAIL_FLAGS_OFFSET] if len(content) > MAIL_FLAGS_OFFSET else 0
    pointers = RecordPointers(**{
        name: read_uint32_or_zero(content, offset)
        for name, offset in POINTER_OFFSETS.items()
    })

    return Record(
        content=content,
        index=index,
        address=address,
        record_type=record_type,
        is_envelope=True,
        is_folder=is_folder,
        is_system_folder=bool(folder_bits & SYSTEM_FOLDER_BIT),
        flags=flags,
        pointers=pointers,
    )


def column_names(folder: Optional[Record]) -> list[str]:
    """Column headings for the item table of a folder."""
    if folder is not None and folder.record_type == RecordType.FILE_FOLDER:
        return ["File", "Description", "Size", "Index"]
    return ["Date", "From/To", "Subject", "Index"]


def envelope_columns(record: Record) -> list[Optional[str]]:
    """
    Split an envelope label into the four item table columns.

    Mail and file envelopes hold three tab-separated pieces, address
    envelopes two. Pieces that are missing come back as None.
    """
    columns: list[Optional[str]] = [None, None, None, str(record.index)]
    if not record.is_envelope:
        return columns

    label = read_cstring(record.content, LABEL_OFFSET, LABEL_COLUMN_END)
    pieces = label.split('\t')

    if record.record_type in (RecordType.FAVORITE_ENVELOPE, RecordType.GROUP_ENVELOPE):
        columns[1] = label
    elif record.record_type == RecordType.ADDRESS_ENVELOPE:
        if len(pieces) >= 2:
            columns[1] = pieces[0]
            columns[2] = '\t'.join(pieces[1:])
    elif record.record_type in (RecordType.MAIL_ENVELOPE, RecordType.FILE_ENVELOPE):
        if len(pieces) >= 3:
            columns[0] = pieces[0]
            columns[1] = pieces[1]
            columns[2] = '\t'.join(pieces[2:])

    return columns
