"""MBOX format exporter - Unix mailbox format."""

import logging
import re
from pathlib import Path
from typing import BinaryIO, Optional

from ..core.byte_codec import TEXT_ENCODING
from ..core.dates import format_asctime
from ..core.mail_message import LINE_SEPARATOR, MailMessage
from ..core.record import Record, RecordType
from .base import BaseExporter, ExportOptions

logger = logging.getLogger(__name__)


class MboxExporter(BaseExporter):
    """
    Exports mail messages to MBOX format (Unix mailbox).

    MBOX stores multiple messages in a single file, separated by 'From ' lines.
    With folder_structure set, each cabinet folder gets its own mbox file
    inside the output directory.
    """

    format_name = "MBOX"
    file_extension = ".mbox"
    exportable_type = RecordType.MAIL_ENVELOPE
    data_type = RecordType.MAIL_DATA

    def __init__(self, options: ExportOptions):
        super().__init__(options)
        self._mbox_files: dict[str, BinaryIO] = {}  # mbox path -> file handle
        self._folder_paths: list[str] = []
        self.last_message: Optional[MailMessage] = None

    def open_folder(self, folder: Record):
        self._folder_paths.append(self.walker.folder_path(folder))

    def close_folder(self, folder: Record):
        if self._folder_paths:
            self._folder_paths.pop()

    def close(self):
        """Close all open mbox files."""
        for path, file_handle in self._mbox_files.items():
            try:
                file_handle.close()
            except OSError as e:
                logger.warning(f"Error closing {path}: {e}")
        self._mbox_files.clear()
        self._folder_paths.clear()

    def _mbox_path(self) -> Path:
        """Mbox file for the folder currently being exported."""
        output_path = self.output_path
        if self.options.folder_structure:
            folder_path = self._folder_paths[-1] if self._folder_paths else ""
            return output_path / f"{self._sanitize_path(folder_path)}{self.file_extension}"
        if output_path.is_dir():
            return output_path / f"export{self.file_extension}"
        return output_path

    def _get_mbox_file(self, mbox_path: Path) -> BinaryIO:
        """Get or create the handle for an mbox file."""
        key = str(mbox_path)
        if key not in self._mbox_files:
            mode = 'ab' if mbox_path.exists() else 'wb'
            self._mbox_files[key] = open(mbox_path, mode)
        return self._mbox_files[key]

    def _write(self, text: str) -> tuple[int, int]:
        """
        Append text to the current mbox file.

        Returns:
            (offset, length) of the written bytes
        """
        data = text.encode(TEXT_ENCODING, errors='replace')
        mbox_file = self._get_mbox_file(self._mbox_path())
        offset = mbox_file.tell()
        mbox_file.write(data)
        mbox_file.flush()
        return offset, len(data)

    def format_message(self, message: MailMessage) -> str:
        """Render a message as an mbox entry."""
        date = message.date
        if date is not None:
            from_line = f"From - {format_asctime(date)}"
        else:
            from_line = f"From - {message.date_string or ''}"

        lines = [from_line, message.mail_header, ""]
        if message.attachment is not None:
            lines.append(f"[{message.attachment}]")
        lines.append(self._escape_from_lines(message.body_text))
        lines.append("")
        return "".join(line + LINE_SEPARATOR for line in lines)

    def export_item(self, envelope: Optional[Record], data: Record) -> tuple[int, int]:
        """Export a single message; returns its (offset, length) in the mbox."""
        message = MailMessage.from_record(data)
        written = self._write(self.format_message(message))
        self.last_message = message
        logger.debug(f"Added message to MBOX: {message.subject}")
        return written

    def _escape_from_lines(self, content: str) -> str:
        """Escape 'From ' lines in message body (MBOX format requirement)."""
        lines = content.split(LINE_SEPARATOR)
        escaped = []
        for line in lines:
            if line.startswith('From '):
                escaped.append('>' + line)
            else:
                escaped.append(line)
        return LINE_SEPARATOR.join(escaped)

    def _sanitize_path(self, path: str) -> str:
        """Sanitize folder path for filesystem."""
        invalid_chars = r'[<>:"|?*\x00-\x1f]'
        sanitized = re.sub(invalid_chars, '_', path)
        sanitized = sanitized.replace('/', '_').replace('\\', '_')
        return sanitized.strip('. ') or "cabinet"
