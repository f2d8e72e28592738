"""Base exporter class for cabinet export formats."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..core.container import Container
from ..core.errors import CabinetError
from ..core.record import NO_POINTER, Record, RecordType
from ..core.traversal import ENTER, ITEM, LEAVE, CabinetWalker

logger = logging.getLogger(__name__)


@dataclass
class ExportProgress:
    """Progress information for export operation."""
    total_items: int
    exported_items: int
    failed_items: int
    current_item: Optional[str] = None
    is_complete: bool = False
    error: Optional[str] = None

    @property
    def progress_percent(self) -> float:
        if self.total_items == 0:
            return 0.0
        return (self.exported_items + self.failed_items) / self.total_items * 100


@dataclass
class ExportOptions:
    """Options for export operation."""
    output_path: str
    folder_structure: bool = False  # One output file per cabinet folder
    overwrite_existing: bool = True
    max_items: int = 0  # 0 = unlimited


class BaseExporter(ABC):
    """
    Abstract base class for cabinet exporters.

    An export walks a folder subtree and drives the exporter through
    open(), open_folder(), export_item(), close_folder() and close().
    Subclasses implement the output format.
    """

    format_name: str = "Unknown"
    file_extension: str = ""
    exportable_type: RecordType = RecordType.UNKNOWN
    # Data record type for flat exports; None if the format has none
    data_type: Optional[RecordType] = None

    def __init__(self, options: ExportOptions):
        """
        Initialize exporter.

        Args:
            options: Export configuration options
        """
        self.options = options
        self.container: Optional[Container] = None
        self.walker: Optional[CabinetWalker] = None
        self._progress = ExportProgress(0, 0, 0)
        self._cancel_requested = False
        self._progress_callback: Optional[Callable[[ExportProgress], None]] = None

    @property
    def output_path(self) -> Path:
        return Path(self.options.output_path)

    def set_progress_callback(self, callback: Callable[[ExportProgress], None]):
        """Set callback function for progress updates."""
        self._progress_callback = callback

    def cancel(self):
        """Request cancellation of export."""
        self._cancel_requested = True
        logger.info("Export cancellation requested")

    def _update_progress(self, item: Optional[str] = None, success: bool = True):
        """Update progress and notify callback."""
        if success:
            self._progress.exported_items += 1
        else:
            self._progress.failed_items += 1

        self._progress.current_item = item

        if self._progress_callback:
            self._progress_callback(self._progress)

    def is_exportable(self, envelope: Record) -> bool:
        """True if the envelope has the exported type and links to data."""
        return (envelope.record_type == self.exportable_type and
                envelope.pointers.data != NO_POINTER)

    def _should_stop(self) -> bool:
        if self._cancel_requested:
            logger.info("Export cancelled by user")
            return True
        if self.options.max_items > 0 and \
           self._progress.exported_items >= self.options.max_items:
            logger.info(f"Reached max item limit: {self.options.max_items}")
            return True
        return False

    def _export_one(self, envelope: Optional[Record], data: Optional[Record]):
        name = envelope.label if envelope is not None else f"record {data.index}"
        try:
            if data is None:
                raise CabinetError(f"Envelope {envelope.index} points outside the cabinet")
            self.export_item(envelope, data)
            self._update_progress(name, success=True)
        except CabinetError as e:
            logger.warning(f"Failed to export {name}: {e}")
            self._update_progress(name, success=False)

    def export(self, container: Container, start: Record) -> ExportProgress:
        """
        Export an envelope, or every exportable envelope below a folder.

        Args:
            container: Completed cabinet
            start: Folder to export recursively, or a single envelope

        Returns:
            ExportProgress with final status
        """
        self.container = container
        self.walker = CabinetWalker(container)
        self._cancel_requested = False

        try:
            if start.is_folder:
                total = sum(1 for r in self.walker.iter_subtree_items(start)
                            if self.is_exportable(r))
            else:
                total = 1 if self.is_exportable(start) else 0
            self._progress = ExportProgress(total, 0, 0)

            self.open()
            try:
                if start.is_folder:
                    self._export_tree(start)
                elif self.is_exportable(start):
                    self._export_one(start, container.data_record(start))
            finally:
                self.close()

        except (CabinetError, OSError) as e:
            logger.error(f"Export failed: {e}")
            self._progress.error = str(e)

        self._progress.is_complete = True
        return self._progress

    def _export_tree(self, folder: Record):
        open_folders = []
        try:
            for event, record in self.walker.walk(folder):
                if event == ENTER:
                    self.open_folder(record)
                    open_folders.append(record)
                elif event == LEAVE:
                    open_folders.pop()
                    self.close_folder(record)
                elif event == ITEM and self.is_exportable(record):
                    if self._should_stop():
                        break
                    self._export_one(record, self.container.data_record(record))
        finally:
            while open_folders:
                self.close_folder(open_folders.pop())

    def export_records(self, container: Container,
                       record_type: Optional[RecordType] = None) -> ExportProgress:
        """
        Export every data record of a type, ignoring the folder tree.

        Args:
            container: Completed cabinet
            record_type: Data record type, defaults to the format's data_type

        Returns:
            ExportProgress with final status

        Raises:
            ValueError: If the format has no flat export
        """
        if record_type is None:
            record_type = self.data_type
        if record_type is None:
            raise ValueError(f"{self.format_name} export needs the folder tree")

        self.container = container
        self.walker = CabinetWalker(container)
        self._cancel_requested = False

        records = container.records_of_type(record_type)
        self._progress = ExportProgress(len(records), 0, 0)

        try:
            self.open()
            try:
                for record in records:
                    if self._should_stop():
                        break
                    self._export_one(None, record)
            finally:
                self.close()
        except OSError as e:
            logger.error(f"Export failed: {e}")
            self._progress.error = str(e)

        self._progress.is_complete = True
        return self._progress

    def _prepare_output(self, output_path: Path):
        """Create the output location."""
        if self.options.folder_structure:
            output_path.mkdir(parents=True, exist_ok=True)
        else:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            if output_path.is_file() and self.options.overwrite_existing:
                output_path.unlink()

    def open(self):
        """
        Open the output.

        Override in subclasses if needed.
        """
        self._prepare_output(self.output_path)

    def open_folder(self, folder: Record):
        """Called when the walk enters a folder."""
        pass

    def close_folder(self, folder: Record):
        """Called when the walk leaves a folder."""
        pass

    def close(self):
        """
        Finalize output after export.

        Override in subclasses if needed.
        """
        pass

    @abstractmethod
    def export_item(self, envelope: Optional[Record], data: Record):
        """
        Export a single item.

        Args:
            envelope: Envelope linking to the data, or None for flat exports
            data: Data record holding the content
        """
        pass

    @classmethod
    def get_format_info(cls) -> dict:
        """Get information about this export format."""
        return {
            "name": cls.format_name,
            "extension": cls.file_extension,
            "description": cls.__doc__ or ""
        }
