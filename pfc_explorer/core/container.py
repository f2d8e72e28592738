"""In-memory record graph of a decoded cabinet."""

from dataclasses import dataclass
from typing import Iterator, Optional

from .content import Content, reconstruct
from .record import NO_POINTER, Record, RecordPointers, RecordType

ROOT_INDEX = 1


@dataclass(frozen=True)
class Container:
    """
    A fully read cabinet.

    Records are stored in index order; a record's position is the value
    other records use to point at it. Index 0 never holds real content.
    """

    index_start: int
    index_length: int
    index_count: int
    root_address: int
    records: tuple[Record, ...] = ()
    file_path: str = ""

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.get_record(index)

    @property
    def item_count(self) -> int:
        return len(self.records)

    @property
    def root(self) -> Optional[Record]:
        """Top folder of the cabinet tree."""
        if len(self.records) > ROOT_INDEX:
            return self.records[ROOT_INDEX]
        return None

    def has_record(self, index: int) -> bool:
        return 0 <= index < len(self.records)

    def get_record(self, index: int) -> Record:
        """
        Raises:
            IndexError: If index is outside the cabinet
        """
        if not self.has_record(index):
            raise IndexError(f"Record index {index} out of range (0..{len(self.records) - 1})")
        return self.records[index]

    def get_type(self, index: int) -> RecordType:
        return self.get_record(index).record_type

    def get_pointers(self, index: int) -> RecordPointers:
        return self.get_record(index).pointers

    def get_raw_content(self, index: int) -> bytes:
        return self.get_record(index).content

    def records_of_type(self, record_type: RecordType) -> list[Record]:
        return [r for r in self.records if r.record_type == record_type]

    def data_record(self, envelope: Record) -> Optional[Record]:
        """Data record an envelope points to, or None."""
        index = envelope.pointers.data
        if index == NO_POINTER or not self.has_record(index):
            return None
        return self.records[index]

    def reconstruct(self, record: Record) -> Optional[Content]:
        """
        Decode the content of a record, following an envelope's data pointer.

        Raises:
            TruncatedSubItemError: If the data record is corrupt
        """
        data = self.data_record(record) if record.is_envelope else None
        return reconstruct(record, data)
