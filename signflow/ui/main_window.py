"""Main window for placing fields on a PDF and assigning them to signers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup, QKeySequence, QPixmap
from PySide6.QtWidgets import (
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSplitter,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from signflow.config import EditorConfig
from signflow.model.field import FieldType
from signflow.model.signer import DuplicateSignerError, Signer, add_signer, remove_signer
from signflow.pdf.loader import PdfLoadError, read_pdf
from signflow.pdf.renderer import RenderedPage
from signflow.state.payload import build_workflow_payload
from signflow.state.session import UnassignedFieldError
from signflow.viewer.canvas import PdfCanvas, QtDispatcher, page_image
from signflow.viewer.coordinator import DocumentReady, RenderCoordinator
from signflow.viewer.editor import PlacementSession

logger = logging.getLogger(__name__)

SubmitWorkflow = Callable[[dict[str, Any]], None]


class MainWindow(QMainWindow):
    def __init__(
        self,
        config: EditorConfig | None = None,
        submit_workflow: SubmitWorkflow | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Signature Field Placement")
        self.resize(1300, 850)

        self._config = config or EditorConfig()
        self._submit_workflow = submit_workflow
        self._signers: list[Signer] = []
        self._pixmaps: dict[int, QPixmap] = {}
        self._page_count = 0
        self._current_page_index = 0
        self._document_name = ""

        self._session = PlacementSession(
            list_signers=lambda: list(self._signers),
            config=self._config,
            on_change=self._on_fields_changed,
        )
        self._dispatcher = QtDispatcher(self)
        self._coordinator = RenderCoordinator(
            zoom=self._config.zoom,
            dispatch=self._dispatcher,
            on_page_rendered=self._on_page_rendered,
            on_document_ready=self._on_document_ready,
            on_load_failed=self._on_load_failed,
        )

        self.page_list = QListWidget()
        self.page_list.currentRowChanged.connect(self._on_page_selected)

        self.canvas = PdfCanvas()
        self.canvas.fields_changed.connect(self._on_fields_changed)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(False)
        self.scroll_area.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.scroll_area.setWidget(self.canvas)

        splitter = QSplitter()
        splitter.addWidget(self.page_list)
        splitter.addWidget(self.scroll_area)
        splitter.addWidget(self._build_side_panel())
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 4)
        splitter.setStretchFactor(2, 2)
        self.setCentralWidget(splitter)

        self._build_toolbar()
        self.statusBar().showMessage("Ready")

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        open_action = QAction("Open PDF", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_pdf)
        toolbar.addAction(open_action)

        submit_action = QAction("Create Workflow", self)
        submit_action.triggered.connect(self.submit)
        toolbar.addAction(submit_action)

        delete_action = QAction("Delete Field", self)
        delete_action.triggered.connect(self.delete_selected_field)
        toolbar.addAction(delete_action)

        toolbar.addSeparator()

        prev_action = QAction("Previous", self)
        prev_action.triggered.connect(self.show_previous_page)
        toolbar.addAction(prev_action)

        next_action = QAction("Next", self)
        next_action.triggered.connect(self.show_next_page)
        toolbar.addAction(next_action)

        toolbar.addSeparator()

        mode_group = QActionGroup(self)
        mode_group.setExclusive(True)
        for label, tool in (
            ("Text", FieldType.TEXT),
            ("Checkbox", FieldType.CHECKBOX),
            ("Radio", FieldType.RADIO),
        ):
            action = QAction(label, self)
            action.setCheckable(True)
            action.setChecked(tool is self._session.active_tool)
            action.triggered.connect(lambda _checked=False, t=tool: self._set_tool(t))
            mode_group.addAction(action)
            toolbar.addAction(action)

    def _build_side_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)

        form = QFormLayout()
        self.workflow_name = QLineEdit()
        self.workflow_name.setPlaceholderText("e.g. Sales contract")
        form.addRow("Workflow name", self.workflow_name)
        layout.addLayout(form)

        self.signer_list = QListWidget()
        layout.addWidget(self.signer_list)

        add_row = QHBoxLayout()
        self.signer_input = QLineEdit()
        self.signer_input.setPlaceholderText("Signer name")
        self.signer_input.returnPressed.connect(self.add_signer)
        add_button = QPushButton("Add")
        add_button.clicked.connect(self.add_signer)
        remove_button = QPushButton("Remove")
        remove_button.clicked.connect(self.remove_selected_signer)
        add_row.addWidget(self.signer_input)
        add_row.addWidget(add_button)
        add_row.addWidget(remove_button)
        layout.addLayout(add_row)

        self.field_list = QListWidget()
        self.field_list.itemDoubleClicked.connect(self._on_field_activated)
        layout.addWidget(self.field_list)
        return panel

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._coordinator.close()
        super().closeEvent(event)

    def open_pdf(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Open PDF",
            str(Path.home()),
            "PDF Files (*.pdf)",
        )
        if file_path:
            self.load_file(file_path)

    def load_file(self, file_path: str | Path) -> None:
        try:
            data = read_pdf(file_path)
        except PdfLoadError as exc:
            QMessageBox.critical(self, "Open Failed", str(exc))
            return

        self._close_document()
        self._document_name = Path(file_path).stem
        if not self.workflow_name.text().strip():
            self.workflow_name.setText(self._document_name)
        self._coordinator.load(data)
        self.statusBar().showMessage(f"Loading: {file_path}")

    def submit(self) -> None:
        try:
            payload = build_workflow_payload(
                self.workflow_name.text(),
                self._signers,
                self._session.store,
                require_assignment=self._config.require_assignment,
            )
        except UnassignedFieldError as exc:
            QMessageBox.warning(self, "Unassigned Fields", str(exc))
            return
        except ValueError as exc:
            QMessageBox.information(self, "Incomplete Workflow", str(exc))
            return

        if self._submit_workflow is None:
            self.statusBar().showMessage("No workflow backend configured.")
            return
        try:
            self._submit_workflow(payload)
        except Exception as exc:
            logger.exception("Workflow submission failed")
            QMessageBox.critical(self, "Submission Failed", str(exc))
            return
        self.statusBar().showMessage(f"Workflow submitted: {len(payload['fields'])} field(s)")

    def add_signer(self) -> None:
        try:
            self._signers = add_signer(self._signers, self.signer_input.text())
        except DuplicateSignerError as exc:
            QMessageBox.information(self, "Duplicate Signer", str(exc))
            return
        except ValueError:
            return
        self.signer_input.clear()
        self._refresh_signers()

    def remove_selected_signer(self) -> None:
        row = self.signer_list.currentRow()
        if row < 0:
            return
        self._signers = remove_signer(self._signers, row)
        self._refresh_signers()

    def show_previous_page(self) -> None:
        if self._current_page_index <= 0:
            return
        self.page_list.setCurrentRow(self._current_page_index - 1)

    def show_next_page(self) -> None:
        if self._current_page_index >= self._page_count - 1:
            return
        self.page_list.setCurrentRow(self._current_page_index + 1)

    def delete_selected_field(self) -> None:
        row = self.field_list.currentRow()
        if row < 0 or row >= len(self._session.store):
            self.statusBar().showMessage("No selected field to delete.")
            return
        removed = self._session.remove_field(row)
        self.statusBar().showMessage(f"Deleted field {removed.field_name}")

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        if event.key() == Qt.Key.Key_Delete and self.field_list.hasFocus():
            self.delete_selected_field()
            event.accept()
            return
        super().keyPressEvent(event)

    def _set_tool(self, tool: FieldType) -> None:
        self._session.set_active_tool(tool)
        self.canvas.update()
        self.statusBar().showMessage(f"Placement mode: {tool.value}")

    def _on_page_rendered(self, page_index: int, page: RenderedPage) -> None:
        self._pixmaps[page_index] = QPixmap.fromImage(page_image(page))
        if page_index == self._current_page_index:
            self._show_current_page()

    def _on_document_ready(self, ready: DocumentReady) -> None:
        self._page_count = ready.page_count
        self._session.reset_document(ready.page_count)
        for page_index, metrics in enumerate(ready.metrics):
            self._session.attach_page(page_index, metrics)
        if ready.import_error is not None:
            QMessageBox.warning(self, "Field Import Warning", str(ready.import_error))
        self._session.load_fields(ready.fields)

        self._populate_page_list()
        self._show_current_page()
        self.statusBar().showMessage(
            f"Loaded {ready.page_count} page(s), {len(ready.fields)} existing field(s)"
        )

    def _on_load_failed(self, exc: Exception) -> None:
        QMessageBox.critical(self, "Open Failed", str(exc))
        self._close_document()

    def _on_fields_changed(self) -> None:
        self._refresh_field_list()
        self.canvas.update()

    def _on_field_activated(self, item: QListWidgetItem) -> None:
        page = item.data(Qt.ItemDataRole.UserRole)
        if page is not None and page != self._current_page_index:
            self.page_list.setCurrentRow(int(page))

    def _populate_page_list(self) -> None:
        self.page_list.blockSignals(True)
        self.page_list.clear()
        for page_number in range(1, self._page_count + 1):
            self.page_list.addItem(QListWidgetItem(f"Page {page_number}"))
        self.page_list.setCurrentRow(self._current_page_index)
        self.page_list.blockSignals(False)

    def _on_page_selected(self, row: int) -> None:
        if row < 0 or row >= self._page_count:
            return
        self._current_page_index = row
        self._show_current_page()

    def _show_current_page(self) -> None:
        pixmap = self._pixmaps.get(self._current_page_index)
        if pixmap is None:
            return
        editor = self._session.editor(self._current_page_index)
        self.canvas.set_page(pixmap=pixmap, editor=editor)
        if self._page_count:
            self.statusBar().showMessage(
                f"Page {self._current_page_index + 1}/{self._page_count}"
            )

    def _refresh_signers(self) -> None:
        self.signer_list.clear()
        for signer in self._signers:
            self.signer_list.addItem(f"#{signer.order} {signer.name} ({signer.signer_id})")
        self.canvas.update()

    def _refresh_field_list(self) -> None:
        self.field_list.clear()
        for field in self._session.store:
            owner = field.signer_name or "unassigned"
            text = (
                f"{field.field_name} [{owner}] p{field.page + 1} "
                f"x:{round(field.x)} y:{round(field.y)} {round(field.width)}x{round(field.height)} pt"
            )
            item = QListWidgetItem(text)
            item.setData(Qt.ItemDataRole.UserRole, field.page)
            self.field_list.addItem(item)

    def _close_document(self) -> None:
        self._coordinator.cancel()
        self._pixmaps = {}
        self._page_count = 0
        self._current_page_index = 0
        self._session.reset_document()
        self.page_list.clear()
        self.field_list.clear()
        self.canvas.clear_page()
