"""Main application window for the cabinet viewer."""

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFileDialog, QMessageBox,
    QTreeWidget, QTreeWidgetItem, QSplitter, QTextEdit,
    QProgressBar, QStatusBar, QToolBar,
    QGroupBox, QComboBox, QCheckBox, QLineEdit,
)
from PyQt6.QtCore import Qt, QThread, pyqtSignal
from PyQt6.QtGui import QAction

from ..core.cabinet_reader import CabinetReader, ReadProgress
from ..core.container import Container
from ..core.errors import CabinetError, ReadCancelledError
from ..core.mail_message import MailMessage
from ..core.favorite import Favorite
from ..core.record import Record, column_names, envelope_columns
from ..core.traversal import CabinetWalker
from ..exporters import ExportOptions, ExportProgress, get_exporter

logger = logging.getLogger(__name__)

RECORD_ROLE = Qt.ItemDataRole.UserRole


class CabinetLoadWorker(QThread):
    """Background worker that reads a cabinet file."""

    progress_updated = pyqtSignal(int)
    load_finished = pyqtSignal(object)
    error_occurred = pyqtSignal(str, int)

    def __init__(self, file_path: str):
        super().__init__()
        self.reader = CabinetReader(file_path)

    def run(self):
        try:
            container = self.reader.read(progress_callback=self._on_progress)
            self.load_finished.emit(container)
        except ReadCancelledError:
            self.error_occurred.emit("", self.reader.progress.percent)
        except (CabinetError, OSError) as e:
            logger.error(f"Load error: {e}")
            self.error_occurred.emit(str(e), self.reader.progress.percent)

    def _on_progress(self, progress: ReadProgress):
        self.progress_updated.emit(progress.percent)

    def request_stop(self):
        self.reader.cancel()


class ExportWorker(QThread):
    """Background worker for export operations."""

    progress_updated = pyqtSignal(object)
    export_finished = pyqtSignal(object)

    def __init__(self, exporter, container: Container, start: Record):
        super().__init__()
        self.exporter = exporter
        self.container = container
        self.start_record = start

    def run(self):
        self.exporter.set_progress_callback(self._on_progress)
        result = self.exporter.export(self.container, self.start_record)
        self.export_finished.emit(result)

    def _on_progress(self, progress: ExportProgress):
        self.progress_updated.emit(progress)

    def request_stop(self):
        self.exporter.cancel()


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Filing Cabinet Explorer")
        self.setMinimumSize(1000, 700)

        self._cabinet_path: Optional[str] = None
        self._container: Optional[Container] = None
        self._walker: Optional[CabinetWalker] = None
        self._load_worker: Optional[CabinetLoadWorker] = None
        self._export_worker: Optional[ExportWorker] = None

        self._setup_ui()
        self._create_menus()
        self._create_toolbar()
        self._update_ui_state()

    def _setup_ui(self):
        """Set up the main UI layout."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QVBoxLayout(central_widget)

        # File selection area
        file_group = QGroupBox("Cabinet File")
        file_layout = QHBoxLayout(file_group)

        self.file_path_edit = QLineEdit()
        self.file_path_edit.setReadOnly(True)
        self.file_path_edit.setPlaceholderText("Select a Filing Cabinet (PFC) file...")
        file_layout.addWidget(self.file_path_edit)

        self.browse_btn = QPushButton("Browse...")
        self.browse_btn.clicked.connect(self._on_browse_clicked)
        file_layout.addWidget(self.browse_btn)

        self.load_btn = QPushButton("Load")
        self.load_btn.clicked.connect(self._on_load_clicked)
        file_layout.addWidget(self.load_btn)

        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self._on_cancel_clicked)
        file_layout.addWidget(self.cancel_btn)

        main_layout.addWidget(file_group)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        # Left panel - folder tree
        left_panel = QWidget()
        left_layout = QVBoxLayout(left_panel)
        left_layout.setContentsMargins(0, 0, 0, 0)

        left_layout.addWidget(QLabel("Folders:"))
        self.folder_tree = QTreeWidget()
        self.folder_tree.setHeaderHidden(True)
        self.folder_tree.itemSelectionChanged.connect(self._on_folder_selected)
        left_layout.addWidget(self.folder_tree)

        splitter.addWidget(left_panel)

        # Right panel - item table and preview
        right_splitter = QSplitter(Qt.Orientation.Vertical)

        item_panel = QWidget()
        item_layout = QVBoxLayout(item_panel)
        item_layout.setContentsMargins(0, 0, 0, 0)

        item_layout.addWidget(QLabel("Items:"))
        self.item_tree = QTreeWidget()
        self.item_tree.setRootIsDecorated(False)
        self.item_tree.setHeaderLabels(column_names(None))
        self.item_tree.setColumnWidth(0, 150)
        self.item_tree.setColumnWidth(1, 200)
        self.item_tree.setColumnWidth(2, 300)
        self.item_tree.itemSelectionChanged.connect(self._on_item_selected)
        item_layout.addWidget(self.item_tree)

        right_splitter.addWidget(item_panel)

        preview_panel = QWidget()
        preview_layout = QVBoxLayout(preview_panel)
        preview_layout.setContentsMargins(0, 0, 0, 0)

        preview_header = QHBoxLayout()
        preview_header.addWidget(QLabel("Preview:"))
        preview_header.addStretch()
        self.show_header_cb = QCheckBox("Show mail header")
        self.show_header_cb.toggled.connect(lambda checked: self._on_item_selected())
        preview_header.addWidget(self.show_header_cb)
        preview_layout.addLayout(preview_header)

        self.preview_text = QTextEdit()
        self.preview_text.setReadOnly(True)
        preview_layout.addWidget(self.preview_text)

        right_splitter.addWidget(preview_panel)
        right_splitter.setSizes([400, 200])

        splitter.addWidget(right_splitter)
        splitter.setSizes([250, 750])

        main_layout.addWidget(splitter)

        # Export options
        export_group = QGroupBox("Export Selected Folder")
        export_layout = QHBoxLayout(export_group)

        export_layout.addWidget(QLabel("Format:"))
        self.format_combo = QComboBox()
        self.format_combo.addItem("MBOX (Unix mailbox)", "mbox")
        self.format_combo.addItem("Eudora (mbox + TOC)", "eudora")
        self.format_combo.addItem("Favorites (HTML)", "favorites")
        export_layout.addWidget(self.format_combo)

        export_layout.addStretch()

        self.export_btn = QPushButton("Export...")
        self.export_btn.clicked.connect(self._on_export_clicked)
        export_layout.addWidget(self.export_btn)

        main_layout.addWidget(export_group)

        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        main_layout.addWidget(self.progress_bar)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready")

    def _create_menus(self):
        """Create application menus."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")

        open_action = QAction("&Open Cabinet...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self._on_browse_clicked)
        file_menu.addAction(open_action)

        file_menu.addSeparator()

        export_action = QAction("&Export...", self)
        export_action.setShortcut("Ctrl+E")
        export_action.triggered.connect(self._on_export_clicked)
        file_menu.addAction(export_action)

        file_menu.addSeparator()

        exit_action = QAction("E&xit", self)
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        help_menu = menubar.addMenu("&Help")

        about_action = QAction("&About", self)
        about_action.triggered.connect(self._on_about_clicked)
        help_menu.addAction(about_action)

    def _create_toolbar(self):
        """Create application toolbar."""
        toolbar = QToolBar()
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        open_action = QAction("Open", self)
        open_action.triggered.connect(self._on_browse_clicked)
        toolbar.addAction(open_action)

        toolbar.addSeparator()

        export_action = QAction("Export", self)
        export_action.triggered.connect(self._on_export_clicked)
        toolbar.addAction(export_action)

    def set_cabinet_path(self, file_path: str):
        """Select a cabinet file without loading it."""
        self._cabinet_path = file_path
        self.file_path_edit.setText(file_path)
        self._update_ui_state()

    def _update_ui_state(self):
        """Update UI elements based on current state."""
        loading = self._load_worker is not None and self._load_worker.isRunning()
        exporting = self._export_worker is not None and self._export_worker.isRunning()

        self.load_btn.setEnabled(self._cabinet_path is not None and not loading)
        self.cancel_btn.setEnabled(loading or exporting)
        self.export_btn.setEnabled(
            self._container is not None and not loading and not exporting
        )

    def _on_browse_clicked(self):
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Open Filing Cabinet",
            "",
            "Filing Cabinet (*.pfc);;All Files (*.*)"
        )

        if file_path:
            self.set_cabinet_path(file_path)

    def _on_load_clicked(self):
        if not self._cabinet_path:
            return

        self._container = None
        self._walker = None
        self.folder_tree.clear()
        self.item_tree.clear()
        self.preview_text.clear()

        self.progress_bar.setVisible(True)
        self.progress_bar.setMaximum(100)
        self.progress_bar.setValue(0)
        self.status_bar.showMessage(f"Reading cabinet file {self._cabinet_path}")

        self._load_worker = CabinetLoadWorker(self._cabinet_path)
        self._load_worker.progress_updated.connect(self.progress_bar.setValue)
        self._load_worker.load_finished.connect(self._on_load_finished)
        self._load_worker.error_occurred.connect(self._on_load_error)
        self._load_worker.start()
        self._update_ui_state()

    def _on_cancel_clicked(self):
        if self._load_worker and self._load_worker.isRunning():
            self._load_worker.request_stop()
        if self._export_worker and self._export_worker.isRunning():
            self._export_worker.request_stop()

    def _on_load_finished(self, container: Container):
        self.progress_bar.setVisible(False)
        self._container = container
        self._walker = CabinetWalker(container)

        try:
            self._populate_folder_tree()
        except CabinetError as e:
            logger.error(f"Error building folder tree: {e}")
            QMessageBox.warning(self, "Malformed Cabinet",
                                f"The folder tree could not be built:\n{e}")

        self.status_bar.showMessage(
            f"Loaded {len(container)} records from {Path(self._cabinet_path).name}"
        )
        self._update_ui_state()

    def _on_load_error(self, error: str, percent: int):
        self.progress_bar.setVisible(False)
        if error:
            QMessageBox.critical(
                self,
                "Load Error",
                f"Stopped at {percent}%:\n{error}"
            )
            self.status_bar.showMessage("Load failed")
        else:
            self.status_bar.showMessage(f"Load cancelled at {percent}%")
        self._update_ui_state()

    def _populate_folder_tree(self):
        """Build the folder tree from the folder children of the root."""
        self.folder_tree.clear()

        root = self._container.root
        if root is None:
            return

        root_item = QTreeWidgetItem(self.folder_tree)
        root_item.setText(0, root.label or Path(self._cabinet_path).name)
        root_item.setData(0, RECORD_ROLE, root)

        pending = [(root, root_item, 0)]
        visited = {root.index}
        while pending:
            folder, item, depth = pending.pop()
            if depth >= self._walker.max_depth:
                continue
            for child in self._walker.iter_folders(folder):
                if child.index in visited:
                    raise CabinetError(f"Folder {child.index} appears twice in the tree")
                visited.add(child.index)
                child_item = QTreeWidgetItem(item)
                child_item.setText(0, child.label)
                child_item.setData(0, RECORD_ROLE, child)
                pending.append((child, child_item, depth + 1))

        root_item.setExpanded(True)

    def _selected_folder(self) -> Optional[Record]:
        items = self.folder_tree.selectedItems()
        if not items:
            return None
        return items[0].data(0, RECORD_ROLE)

    def _on_folder_selected(self):
        folder = self._selected_folder()
        self.item_tree.clear()
        self.preview_text.clear()
        if folder is None:
            return

        self.item_tree.setHeaderLabels(column_names(folder))
        try:
            for envelope in self._walker.iter_items(folder):
                item = QTreeWidgetItem(self.item_tree)
                for column, value in enumerate(envelope_columns(envelope)):
                    item.setText(column, value or "")
                item.setData(0, RECORD_ROLE, envelope)
        except CabinetError as e:
            logger.warning(f"Folder {folder.index}: {e}")
            self.status_bar.showMessage(f"Folder listing stopped: {e}")

    def _on_item_selected(self):
        items = self.item_tree.selectedItems()
        if not items:
            self.preview_text.clear()
            return

        envelope: Record = items[0].data(0, RECORD_ROLE)
        try:
            content = self._container.reconstruct(envelope)
        except CabinetError as e:
            self.preview_text.setPlainText(f"Content could not be decoded:\n{e}")
            return

        if content is None:
            self.preview_text.setPlainText(envelope.label)
        elif isinstance(content, MailMessage):
            preview = content.head_string(envelope.is_outgoing)
            preview += "\n" + content.text_string(self.show_header_cb.isChecked())
            self.preview_text.setPlainText(preview)
        elif isinstance(content, Favorite):
            self.preview_text.setPlainText(f"{envelope.label}\n{content.url}")
        else:
            self.preview_text.setPlainText(content.head_string() + "\n" + content.text_string())

    def _on_export_clicked(self):
        if self._container is None:
            QMessageBox.information(self, "No Data", "Load a cabinet file first.")
            return

        folder = self._selected_folder() or self._container.root
        if folder is None:
            return

        format_code = self.format_combo.currentData()
        if format_code == "favorites":
            output_path, _ = QFileDialog.getSaveFileName(
                self, "Save Favorites", "", "HTML Files (*.html)"
            )
        elif format_code == "eudora":
            output_path, _ = QFileDialog.getSaveFileName(
                self, "Save Eudora Mailbox", "", "Eudora Mailbox (*.mbx)"
            )
        else:
            output_path, _ = QFileDialog.getSaveFileName(
                self, "Save MBOX File", "", "MBOX Files (*.mbox)"
            )

        if not output_path:
            return
        if Path(output_path).resolve() == Path(self._cabinet_path).resolve():
            QMessageBox.warning(self, "Export",
                                "Cabinet file and output file must be different.")
            return

        exporter = get_exporter(format_code, ExportOptions(output_path=output_path))

        self.progress_bar.setVisible(True)
        self.progress_bar.setMaximum(100)
        self.progress_bar.setValue(0)

        self._export_worker = ExportWorker(exporter, self._container, folder)
        self._export_worker.progress_updated.connect(self._on_export_progress)
        self._export_worker.export_finished.connect(self._on_export_finished)
        self._export_worker.start()
        self._update_ui_state()

    def _on_export_progress(self, progress: ExportProgress):
        self.progress_bar.setValue(int(progress.progress_percent))
        self.status_bar.showMessage(
            f"Exporting: {progress.exported_items}/{progress.total_items}"
        )

    def _on_export_finished(self, progress: ExportProgress):
        self.progress_bar.setVisible(False)

        if progress.error:
            QMessageBox.warning(
                self, "Export Error",
                f"Export completed with errors:\n{progress.error}"
            )
        else:
            QMessageBox.information(
                self, "Export Complete",
                f"Exported {progress.exported_items} items.\n"
                f"Failed: {progress.failed_items}"
            )

        self.status_bar.showMessage("Export complete")
        self._update_ui_state()

    def _on_about_clicked(self):
        QMessageBox.about(
            self,
            "About Filing Cabinet Explorer",
            "Filing Cabinet Explorer\n\n"
            "Version 1.0.0\n\n"
            "Browse mail, address book and favorites stored in\n"
            "Filing Cabinet (PFC) files and export them\n"
            "to MBOX, Eudora or HTML."
        )

    def closeEvent(self, event):
        for worker in (self._load_worker, self._export_worker):
            if worker and worker.isRunning():
                worker.request_stop()
                worker.wait(5000)

        event.accept()
