"""Reader for Filing Cabinet (PFC) files."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from .byte_codec import read_uint32_le
from .container import Container
from .errors import (
    CabinetError,
    InvalidContainerError,
    ReadCancelledError,
    TruncatedReadError,
)
from .record import Record, decode_record

logger = logging.getLogger(__name__)


@dataclass
class CabinetInfo:
    """Information about a cabinet file."""
    file_path: str
    file_size: int
    is_valid: bool
    index_start: int = 0
    index_length: int = 0
    index_count: int = 0
    root_address: int = 0
    error_message: str = ""


@dataclass
class ReadProgress:
    """Progress of a cabinet read."""
    percent: int = 0
    records_read: int = 0
    is_complete: bool = False
    error: Optional[str] = None


class CabinetReader:
    """
    Reader for Filing Cabinet files.

    The file starts with an identity literal and the address of an index
    table. The index lists one address per record; a zero address is an
    empty slot. Each record is stored as 4 reserved bytes, a u32 length
    and the record content.
    """

    # Cabinet file identity
    CABINET_ID = b'AOLVM100'

    INDEX_START_OFFSET = 16
    INDEX_LENGTH_FIELD = 4
    INDEX_COUNT_FIELD = 8
    INDEX_ENTRIES_FIELD = 12
    ROOT_ADDRESS_FIELD = 16
    RECORD_LENGTH_FIELD = 4

    # Content stored for an empty index slot
    EMPTY_SLOT = bytes(4)

    def __init__(self, file_path: str):
        """
        Initialize cabinet reader.

        Args:
            file_path: Path to the cabinet file
        """
        self.file_path = Path(file_path)
        self._progress = ReadProgress()
        self._cancel_requested = False

    @property
    def progress(self) -> ReadProgress:
        return self._progress

    def cancel(self):
        """Request cancellation of a running read."""
        self._cancel_requested = True
        logger.info("Cabinet read cancellation requested")

    def get_info(self) -> CabinetInfo:
        """
        Get index geometry of the cabinet without reading its records.

        Returns:
            CabinetInfo with file details
        """
        if not self.file_path.exists():
            return CabinetInfo(
                file_path=str(self.file_path),
                file_size=0,
                is_valid=False,
                error_message="File not found"
            )

        file_size = self.file_path.stat().st_size

        try:
            with open(self.file_path, 'rb') as f:
                index_start, index_length, index_count, root_address = self._read_header(f)
        except (CabinetError, OSError) as e:
            return CabinetInfo(
                file_path=str(self.file_path),
                file_size=file_size,
                is_valid=False,
                error_message=str(e)
            )

        return CabinetInfo(
            file_path=str(self.file_path),
            file_size=file_size,
            is_valid=True,
            index_start=index_start,
            index_length=index_length,
            index_count=index_count,
            root_address=root_address,
        )

    def read(
        self,
        progress_callback: Optional[Callable[[ReadProgress], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Container:
        """
        Read every record of the cabinet.

        Args:
            progress_callback: Called whenever the completed percentage changes
            cancel_check: Polled once per index entry; a true result cancels

        Returns:
            The completed Container

        Raises:
            FileNotFoundError: If the file does not exist
            InvalidContainerError: If the identity literal is wrong
            TruncatedReadError: If the file ends before a field or record
            ReadCancelledError: If the read was cancelled
        """
        self._progress = ReadProgress()
        self._cancel_requested = False

        if not self.file_path.exists():
            raise FileNotFoundError(f"Cabinet file not found: {self.file_path}")

        try:
            with open(self.file_path, 'rb') as f:
                container = self._read_container(f, progress_callback, cancel_check)
        except CabinetError as e:
            e.percent = self._progress.percent
            self._fail(str(e), progress_callback)
            raise
        except OSError as e:
            self._fail(str(e), progress_callback)
            raise CabinetError(f"Error reading {self.file_path}: {e}", self._progress.percent) from e

        self._progress.percent = 100
        self._progress.is_complete = True
        if progress_callback:
            progress_callback(self._progress)

        logger.info(f"Read {len(container)} records from {self.file_path}")
        return container

    def _fail(self, message: str, progress_callback):
        logger.error(f"Cabinet read stopped at {self._progress.percent}%: {message}")
        self._progress.error = message
        if progress_callback:
            progress_callback(self._progress)

    def _read_header(self, f: BinaryIO) -> tuple[int, int, int, int]:
        """Check the identity literal and read the index geometry."""
        identity = f.read(len(self.CABINET_ID))
        if identity != self.CABINET_ID:
            raise InvalidContainerError(
                f"{self.file_path.name} is not a Filing Cabinet (identity {identity!r})"
            )

        index_start = self._read_uint32(f, self.INDEX_START_OFFSET)
        index_length = self._read_uint32(f, index_start + self.INDEX_LENGTH_FIELD)
        index_count = self._read_uint32(f, index_start + self.INDEX_COUNT_FIELD)
        root_address = self._read_uint32(f, index_start + self.ROOT_ADDRESS_FIELD)

        logger.debug(
            f"Index at {index_start}: {index_length} bytes, {index_count} entries, "
            f"root at {root_address}"
        )
        return index_start, index_length, index_count, root_address

    def _read_container(self, f: BinaryIO, progress_callback, cancel_check) -> Container:
        index_start, index_length, index_count, root_address = self._read_header(f)
        file_size = f.seek(0, 2)

        first_entry = index_start + self.INDEX_ENTRIES_FIELD
        index_end = index_start + self.INDEX_COUNT_FIELD + index_length
        span = max(index_end - first_entry, 1)
        records: list[Record] = []

        for entry in range(first_entry, index_end, 4):
            address = self._read_uint32(f, entry)

            if address:
                length = self._read_uint32(f, address + self.RECORD_LENGTH_FIELD)
                start = address + self.RECORD_LENGTH_FIELD + 4
                if start + length > file_size:
                    raise TruncatedReadError(
                        f"Record {len(records)} at {address} claims {length} bytes, "
                        f"file has {max(file_size - start, 0)} left"
                    )
                content = self._read_exact(f, start, length)
            else:
                content = self.EMPTY_SLOT

            record = decode_record(content, index=len(records), address=address)
            records.append(record)
            self._progress.records_read = len(records)

            if self._cancel_requested or (cancel_check and cancel_check()):
                raise ReadCancelledError("Cabinet file read cancelled")

            percent = min(99, (entry + 4 - first_entry) * 100 // span)
            if percent != self._progress.percent:
                self._progress.percent = percent
                if progress_callback:
                    progress_callback(self._progress)

        return Container(
            index_start=index_start,
            index_length=index_length,
            index_count=index_count,
            root_address=root_address,
            records=tuple(records),
            file_path=str(self.file_path),
        )

    def _read_exact(self, f: BinaryIO, offset: int, size: int) -> bytes:
        f.seek(offset)
        data = f.read(size)
        if len(data) != size:
            raise TruncatedReadError(
                f"Expected {size} bytes at offset {offset}, file has {len(data)}"
            )
        return data

    def _read_uint32(self, f: BinaryIO, offset: int) -> int:
        return read_uint32_le(self._read_exact(f, offset, 4), 0)
