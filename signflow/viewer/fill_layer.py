"""Signer page widget: the rendered page with input widgets laid over it."""

from __future__ import annotations

from typing import Mapping

from PySide6.QtGui import QColor, QFont, QPainter, QPixmap
from PySide6.QtWidgets import QCheckBox, QLineEdit, QRadioButton, QWidget

from signflow.model.field import FieldType
from signflow.viewer.geometry import PageMetrics
from signflow.viewer.overlay import FillControl, FillOverlay

_TEXT_STYLE = (
    "QLineEdit { border: 2px solid rgb(59, 130, 246); border-radius: 3px;"
    " background: rgba(219, 234, 254, 180); padding: 0px 4px; }"
)


class FillPage(QWidget):
    def __init__(self, overlay: FillOverlay, page: int) -> None:
        super().__init__()
        self._overlay = overlay
        self._page = page
        self._pixmap: QPixmap | None = None
        self._metrics: PageMetrics | None = None
        self._widgets: dict[str, QWidget] = {}
        self.setMinimumSize(500, 600)

    def set_page(self, pixmap: QPixmap, metrics: PageMetrics, values: Mapping[str, str]) -> None:
        self._pixmap = pixmap
        self._metrics = metrics
        self.resize(pixmap.size())
        self.refresh(values)

    def refresh(self, values: Mapping[str, str]) -> None:
        if self._metrics is None:
            return
        controls = self._overlay.controls_for_page(self._page, self._metrics, values)
        for control in controls:
            widget = self._widgets.get(control.field_name)
            if widget is None:
                widget = self._create_widget(control)
                self._widgets[control.field_name] = widget
            self._apply(widget, control)
        self.update()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        del event
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#e9eaee"))
        if self._pixmap is not None:
            painter.drawPixmap(0, 0, self._pixmap)

    def _create_widget(self, control: FillControl) -> QWidget:
        name = control.field_name
        if control.kind is FieldType.TEXT:
            widget = QLineEdit(self)
            widget.setStyleSheet(_TEXT_STYLE)
            widget.textEdited.connect(lambda text, n=name: self._overlay.edit_text(n, text))
        elif control.kind is FieldType.CHECKBOX:
            widget = QCheckBox(self)
            widget.toggled.connect(lambda checked, n=name: self._overlay.toggle(n, checked))
        else:
            widget = QRadioButton(self)
            # Group exclusivity is applied by the value owner, not by Qt.
            widget.setAutoExclusive(False)
            widget.toggled.connect(lambda checked, n=name: self._on_radio(n, checked))
        if control.placeholder:
            widget.setToolTip(control.placeholder)
        widget.show()
        return widget

    def _apply(self, widget: QWidget, control: FillControl) -> None:
        rect = control.rect
        widget.setGeometry(int(rect.x), int(rect.y), max(1, int(rect.width)), max(1, int(rect.height)))
        widget.blockSignals(True)
        try:
            if isinstance(widget, QLineEdit):
                if widget.text() != control.text:
                    widget.setText(control.text)
                widget.setPlaceholderText(control.placeholder)
                font = QFont("Helvetica")
                font.setPointSizeF(control.font_size)
                widget.setFont(font)
            elif isinstance(widget, (QCheckBox, QRadioButton)):
                widget.setChecked(control.checked)
        finally:
            widget.blockSignals(False)

    def _on_radio(self, field_name: str, checked: bool) -> None:
        if checked:
            self._overlay.toggle(field_name, True)
            return
        # A radio option is only cleared by selecting a sibling.
        widget = self._widgets[field_name]
        widget.blockSignals(True)
        widget.setChecked(True)
        widget.blockSignals(False)
