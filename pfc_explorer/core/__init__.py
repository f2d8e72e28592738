"""Core components for cabinet reading and decoding."""

from .errors import (
    CabinetError,
    InvalidContainerError,
    TruncatedReadError,
    OutOfRangeError,
    TruncatedSubItemError,
    DecompressionError,
    MalformedGraphError,
    ReadCancelledError,
)
from .record import Record, RecordType, RecordPointers, decode_record
from .container import Container
from .cabinet_reader import CabinetReader, CabinetInfo, ReadProgress
from .traversal import CabinetWalker
from .mail_message import MailMessage
from .address_book import AddressEntry, AddressGroup
from .favorite import Favorite
from .content import reconstruct

__all__ = [
    "CabinetError",
    "InvalidContainerError",
    "TruncatedReadError",
    "OutOfRangeError",
    "TruncatedSubItemError",
    "DecompressionError",
    "MalformedGraphError",
    "ReadCancelledError",
    "Record",
    "RecordType",
    "RecordPointers",
    "decode_record",
    "Container",
    "CabinetReader",
    "CabinetInfo",
    "ReadProgress",
    "CabinetWalker",
    "MailMessage",
    "AddressEntry",
    "AddressGroup",
    "Favorite",
    "reconstruct",
]
