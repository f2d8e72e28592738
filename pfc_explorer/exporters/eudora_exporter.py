"""Eudora exporter - mbox file plus Eudora table of contents."""

import logging
import struct
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO, Optional

from ..core.byte_codec import TEXT_ENCODING
from ..core.dates import epoch_seconds, format_asctime
from ..core.mail_message import MailMessage
from ..core.record import Record
from .base import ExportOptions
from .mbox_exporter import MboxExporter

logger = logging.getLogger(__name__)

PCE_NAME = "descmap.pce"

TOC_HEADER_SIZE = 104
TOC_ENTRY_SIZE = 218
TOC_COUNT_OFFSET = 102

# Eudora status: read; priority: normal
TOC_STATUS_READ = 1
TOC_PRIORITY_NORMAL = 3

_TOC_ENTRY = struct.Struct('<IIiHBBH32s64s64s8s32s')


def _encode(text: Optional[str]) -> bytes:
    return (text or "").encode(TEXT_ENCODING, errors='replace')


def mailbox_id(mbox_path: Path) -> str:
    """Mailbox name without its file extension."""
    name = mbox_path.name
    dot = name.rfind('.')
    return name[:dot] if dot > 0 else name


class TocFile:
    """Eudora table of contents (.toc) written alongside an mbox file."""

    def __init__(self, mbox_path: Path):
        self.mailbox_name = mailbox_id(mbox_path)
        self.path = mbox_path.parent / f"{self.mailbox_name}.toc"
        self.message_count = 0
        self._out: Optional[BinaryIO] = None

    def write_header(self):
        """Write the fixed 104-byte header; the message count is patched on close."""
        self._out = open(self.path, 'wb')
        header = bytearray(TOC_HEADER_SIZE)
        header[0] = 0x30
        header[8:40] = _encode(self.mailbox_name)[:32].ljust(32, b'\x00')
        header[40] = 0x03  # mailbox type
        header[54:70] = b'\xff' * 16
        header[70:74] = b'\x02\x00\x02\x00'
        self._out.write(bytes(header))

    def write_message(self, message: MailMessage, offset: int, length: int):
        """Write the 218-byte entry for one message."""
        date = message.date
        if date is not None:
            date_time = epoch_seconds(date)
            asc_time = format_asctime(date)
        else:
            date_time = 0
            asc_time = message.date_string or ""

        entry = _TOC_ENTRY.pack(
            offset,
            length,
            max(min(date_time, 0x7FFFFFFF), -0x80000000),
            TOC_STATUS_READ,
            0,
            0,
            TOC_PRIORITY_NORMAL,
            _encode(asc_time),
            _encode(message.sender),
            _encode(message.subject),
            b'\xff' * 8,
            b'',
        )
        self._out.write(entry)
        self.message_count += 1

    def close(self):
        """Close the file and store the final message count."""
        if self._out is None:
            return
        self._out.seek(TOC_COUNT_OFFSET)
        self._out.write(struct.pack('<H', self.message_count & 0xFFFF))
        self._out.close()
        self._out = None


def add_pce_entry(mbox_path: Path):
    """Register a mailbox in the folder's descmap.pce unless already listed."""
    pce_path = mbox_path.parent / PCE_NAME
    mbox_name = mbox_path.name

    if pce_path.exists():
        with open(pce_path, 'r', encoding=TEXT_ENCODING) as f:
            for entry in f:
                fields = entry.split(',')
                if len(fields) > 1 and fields[1].lower() == mbox_name.lower():
                    return

    with open(pce_path, 'a', encoding=TEXT_ENCODING) as f:
        f.write(f"{mailbox_id(mbox_path)},{mbox_name},M,N\n")
    logger.debug(f"Added {mbox_name} to {pce_path}")


class EudoraExporter(MboxExporter):
    """
    Exports mail messages for Eudora.

    Writes a flat mbox file plus a <mailbox>.toc index and a descmap.pce
    entry for the mailbox.
    """

    format_name = "Eudora"

    def __init__(self, options: ExportOptions):
        super().__init__(replace(options, folder_structure=False))
        self._toc: Optional[TocFile] = None

    def open(self):
        super().open()
        self._toc = TocFile(self._mbox_path())
        self._toc.write_header()

    def export_item(self, envelope: Optional[Record], data: Record) -> tuple[int, int]:
        offset, length = super().export_item(envelope, data)
        self._toc.write_message(self.last_message, offset, length)
        return offset, length

    def close(self):
        mbox_path = self._mbox_path()
        super().close()
        if self._toc is not None:
            self._toc.close()
            self._toc = None
            add_pce_entry(mbox_path)
