"""HTML bookmark file exporter for favorite places."""

import html
import logging
from typing import Optional, TextIO

from ..core.byte_codec import TEXT_ENCODING
from ..core.favorite import Favorite
from ..core.record import Record, RecordType
from .base import BaseExporter, ExportOptions

logger = logging.getLogger(__name__)

INDENT = "  "


class FavoriteHtmlExporter(BaseExporter):
    """
    Exports favorite places to a bookmark-style HTML file.

    Cabinet folders become nested <dl> lists with a heading.
    """

    format_name = "Favorites HTML"
    file_extension = ".html"
    exportable_type = RecordType.FAVORITE_ENVELOPE

    def __init__(self, options: ExportOptions):
        super().__init__(options)
        self._out: Optional[TextIO] = None
        self._depth = 0

    def _prepare_output(self, output_path):
        output_path.parent.mkdir(parents=True, exist_ok=True)

    def _println(self, text: str):
        self._out.write(text + "\n")

    def open(self):
        super().open()
        self._depth = 0
        self._out = open(self.output_path, 'w', encoding=TEXT_ENCODING, errors='replace')
        self._println("<html>")
        self._println("<head>")
        self._println("<title>Favorite Places</title>")
        self._println("</head>")
        self._println("<body>")
        self._println("<dl><p>")

    def open_folder(self, folder: Record):
        self._depth += 1
        indent = INDENT * self._depth
        self._println(f"{indent}<dt><h3>{html.escape(folder.label)}</h3>")
        self._println(f"{indent}<dl><p>")

    def export_item(self, envelope: Optional[Record], data: Record):
        favorite = Favorite.from_record(data)
        label = envelope.label if envelope is not None else favorite.url
        indent = INDENT * self._depth
        self._println(
            f"{indent}{INDENT}<dt><a href='{html.escape(favorite.url, quote=True)}'>"
            f"{html.escape(label)}</a>"
        )

    def close_folder(self, folder: Record):
        self._println(f"{INDENT * self._depth}</p></dl>")
        self._depth -= 1

    def close(self):
        if self._out is not None:
            self._println("</p></dl>")
            self._println("</body>")
            self._println("</html>")
            self._out.close()
            self._out = None
