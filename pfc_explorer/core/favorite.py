"""Favorite place (bookmark) records."""

from dataclasses import dataclass

from .byte_codec import read_cstring
from .record import Record


@dataclass(frozen=True)
class Favorite:
    """A saved web page. The record content is the bare URL."""
    url: str = ""

    @classmethod
    def from_record(cls, record: Record) -> "Favorite":
        return cls.from_content(record.content)

    @classmethod
    def from_content(cls, content: bytes) -> "Favorite":
        return cls(url=read_cstring(content))
