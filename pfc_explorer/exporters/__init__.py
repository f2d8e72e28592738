"""Cabinet export format handlers."""

from .base import BaseExporter, ExportOptions, ExportProgress
from .mbox_exporter import MboxExporter
from .eudora_exporter import EudoraExporter
from .favorite_html_exporter import FavoriteHtmlExporter

EXPORT_FORMATS = {
    "mbox": MboxExporter,
    "eudora": EudoraExporter,
    "favorites": FavoriteHtmlExporter,
}


def get_exporter(format_name: str, options: ExportOptions) -> BaseExporter:
    """
    Create an exporter by format name.

    Raises:
        ValueError: If the format is unknown
    """
    try:
        exporter_class = EXPORT_FORMATS[format_name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown export format: {format_name} "
            f"(choose from {', '.join(EXPORT_FORMATS)})"
        )
    return exporter_class(options)


__all__ = [
    "BaseExporter",
    "ExportOptions",
    "ExportProgress",
    "MboxExporter",
    "EudoraExporter",
    "FavoriteHtmlExporter",
    "EXPORT_FORMATS",
    "get_exporter",
]
