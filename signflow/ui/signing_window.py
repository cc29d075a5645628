"""Signer window: fill the assigned fields and confirm."""

from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from signflow.config import EditorConfig
from signflow.pdf.renderer import RenderedPage
from signflow.state.filling import FillSession, SignerDocument
from signflow.viewer.canvas import QtDispatcher, page_image
from signflow.viewer.coordinator import DocumentReady, RenderCoordinator
from signflow.viewer.fill_layer import FillPage
from signflow.viewer.overlay import FillOverlay

logger = logging.getLogger(__name__)

SubmitFillAndSign = Callable[[str, str, dict[str, str]], None]


class SigningWindow(QMainWindow):
    def __init__(
        self,
        document: SignerDocument,
        submit_fill_and_sign: SubmitFillAndSign | None = None,
        config: EditorConfig | None = None,
    ) -> None:
        super().__init__()
        self._document = document
        self._submit = submit_fill_and_sign
        self._config = config or EditorConfig()
        self.setWindowTitle(document.workflow_name or "Document to sign")
        self.resize(1200, 850)

        self._fill_session = FillSession(document.fields)
        self._overlay = FillOverlay(document.fields, on_change=self._on_value_changed)
        self._pages: list[FillPage] = []
        self._pixmaps: dict[int, QPixmap] = {}

        self._dispatcher = QtDispatcher(self)
        self._coordinator = RenderCoordinator(
            zoom=self._config.zoom,
            detect=None,
            dispatch=self._dispatcher,
            on_page_rendered=self._on_page_rendered,
            on_document_ready=self._on_document_ready,
            on_load_failed=self._on_load_failed,
        )

        self._page_container = QWidget()
        self._page_layout = QVBoxLayout(self._page_container)
        self._page_layout.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        scroll_area = QScrollArea()
        scroll_area.setWidgetResizable(True)
        scroll_area.setWidget(self._page_container)

        side = QWidget()
        side_layout = QVBoxLayout(side)
        side_layout.addWidget(QLabel(f"Signer: {document.signer_name}"))
        self.checklist = QListWidget()
        side_layout.addWidget(self.checklist)
        self.sign_button = QPushButton("Fill and sign")
        self.sign_button.clicked.connect(self.fill_and_sign)
        side_layout.addWidget(self.sign_button)

        splitter = QSplitter()
        splitter.addWidget(scroll_area)
        splitter.addWidget(side)
        splitter.setStretchFactor(0, 4)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        self._refresh_checklist()
        self.statusBar().showMessage("Loading document...")
        self._coordinator.load(document.pdf_bytes)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._coordinator.close()
        super().closeEvent(event)

    def fill_and_sign(self) -> None:
        if not self._fill_session.is_complete():
            missing = [item.label for item in self._fill_session.checklist() if not item.filled]
            answer = QMessageBox.question(
                self,
                "Incomplete Fields",
                "Some fields are still empty:\n" + "\n".join(missing) + "\n\nSign anyway?",
            )
            if answer != QMessageBox.StandardButton.Yes:
                return

        if self._submit is None:
            self.statusBar().showMessage("No signing backend configured.")
            return
        payload = self._fill_session.fill_payload(self._document.signer_name)
        try:
            self._submit(self._document.workflow_id, payload["signerName"], payload["fields"])
        except Exception as exc:
            logger.exception("Fill and sign failed")
            QMessageBox.critical(self, "Signing Failed", str(exc))
            return
        self.sign_button.setEnabled(False)
        self.statusBar().showMessage("Document filled and signed.")

    def _on_value_changed(self, field_name: str, value: str) -> None:
        values = self._fill_session.apply_change(field_name, value)
        for page in self._pages:
            page.refresh(values)
        self._refresh_checklist()

    def _on_page_rendered(self, page_index: int, page: RenderedPage) -> None:
        self._pixmaps[page_index] = QPixmap.fromImage(page_image(page))

    def _on_document_ready(self, ready: DocumentReady) -> None:
        for page_index, metrics in enumerate(ready.metrics):
            fill_page = FillPage(self._overlay, page_index)
            fill_page.set_page(self._pixmaps[page_index], metrics, self._fill_session.values)
            fill_page.setFixedSize(metrics.pixel_width, metrics.pixel_height)
            self._page_layout.addWidget(fill_page)
            self._pages.append(fill_page)
        self.statusBar().showMessage(
            f"{ready.page_count} page(s), {len(self._document.fields)} field(s) to fill"
        )

    def _on_load_failed(self, exc: Exception) -> None:
        QMessageBox.critical(self, "Open Failed", str(exc))

    def _refresh_checklist(self) -> None:
        self.checklist.clear()
        for item in self._fill_session.checklist():
            mark = "[x]" if item.filled else "[ ]"
            self.checklist.addItem(QListWidgetItem(f"{mark} {item.label} ({item.field_type.value})"))
