"""PFC Explorer - reader and exporter for Filing Cabinet (PFC) files."""

__version__ = "1.0.0"
