"""PyQt6 desktop viewer for cabinet files."""
