#!/usr/bin/env python3
"""
Filing Cabinet Explorer

Main entry point for the desktop viewer.
"""

import sys
import logging
from pathlib import Path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    try:
        from PyQt6.QtWidgets import QApplication
    except ImportError:
        print("Error: PyQt6 is required. Install with: pip install PyQt6")
        sys.exit(1)

    app = QApplication(sys.argv)
    app.setApplicationName("Filing Cabinet Explorer")
    app.setOrganizationName("PFCExplorer")
    app.setStyle("Fusion")

    from pfc_explorer.gui.main_window import MainWindow

    window = MainWindow()
    window.show()

    # If a cabinet was passed as argument, select and load it
    if len(sys.argv) > 1:
        file_path = sys.argv[1]
        if Path(file_path).exists():
            window.set_cabinet_path(file_path)
            window.load_btn.click()
        else:
            logger.warning(f"File not found: {file_path}")

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
