"""Interactive PDF page canvas for field placement, reassignment and dragging."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QPoint, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QImage, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QInputDialog, QMenu, QWidget

from signflow.model.field import FieldType
from signflow.model.signer import signer_color, signer_index
from signflow.pdf.renderer import RenderedPage
from signflow.viewer.editor import ExistingField, PlacementEditor
from signflow.viewer.geometry import Rect

_CURSORS = {
    "move": Qt.CursorShape.SizeAllCursor,
    "pointer": Qt.CursorShape.PointingHandCursor,
    "crosshair": Qt.CursorShape.CrossCursor,
    "default": Qt.CursorShape.ArrowCursor,
}


class QtDispatcher(QObject):
    """Runs callbacks emitted from worker threads on the GUI thread."""

    invoke = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.invoke.connect(self._run)

    def __call__(self, callback: Callable[[], None]) -> None:
        self.invoke.emit(callback)

    def _run(self, callback: Callable[[], None]) -> None:
        callback()


def page_image(page: RenderedPage) -> QImage:
    image = QImage(page.samples, page.pixel_width, page.pixel_height, page.stride, QImage.Format_RGB888)
    return image.copy()


def to_qrect(rect: Rect) -> QRectF:
    return QRectF(rect.x, rect.y, rect.width, rect.height)


class PdfCanvas(QWidget):
    fields_changed = Signal()

    def __init__(self) -> None:
        super().__init__()
        self._pixmap: QPixmap | None = None
        self._editor: PlacementEditor | None = None

        self.setMouseTracking(True)
        self.setMinimumSize(500, 600)

    @property
    def editor(self) -> PlacementEditor | None:
        return self._editor

    def set_page(self, pixmap: QPixmap, editor: PlacementEditor | None) -> None:
        self._pixmap = pixmap
        self._editor = editor
        if editor is not None:
            editor.reset()
        self.resize(pixmap.size())
        self.update()

    def clear_page(self) -> None:
        self._pixmap = None
        self._editor = None
        self.resize(500, 600)
        self.update()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        del event
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#e9eaee"))

        if self._pixmap is None:
            return
        painter.drawPixmap(0, 0, self._pixmap)
        if self._editor is None:
            return

        signers = self._editor.signers()
        dragged = self._editor.dragged_index()
        for index, field, rect in self._editor.visible_fields():
            if index == dragged:
                continue
            color = QColor(signer_color(signer_index(field, signers)))
            fill = QColor(color)
            fill.setAlpha(90)
            pen = QPen(color)
            pen.setWidth(3 if index == self._editor.hover_index else 2)
            qrect = to_qrect(rect)

            painter.fillRect(qrect, fill)
            painter.setPen(pen)
            painter.drawRect(qrect)
            caption = field.label or field.signer_name
            if caption and field.field_type is FieldType.TEXT:
                painter.drawText(qrect, Qt.AlignmentFlag.AlignCenter, caption)
            if field.has_handle:
                painter.fillRect(to_qrect(self._editor.handle_rect(rect)), color)

        preview = self._editor.preview_rect()
        if preview is not None:
            pen = QPen(QColor("#2563eb"))
            pen.setWidth(2)
            pen.setStyle(Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.fillRect(to_qrect(preview), QColor(59, 130, 246, 40))
            painter.drawRect(to_qrect(preview))

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if self._editor is None or event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        self._editor.pointer_down(pos.x(), pos.y())
        self._after_event()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._editor is None:
            return
        pos = event.position()
        self._editor.pointer_move(pos.x(), pos.y())
        self.setCursor(_CURSORS[self._editor.cursor_hint()])
        self.update()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if self._editor is None or event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        self._editor.pointer_up(pos.x(), pos.y())
        self._after_event()

    def leaveEvent(self, event) -> None:  # type: ignore[override]
        if self._editor is not None:
            self._editor.pointer_leave()
            self.update()
        super().leaveEvent(event)

    def _after_event(self) -> None:
        self.update()
        if self._editor is not None and self._editor.popup is not None:
            self._run_popup()

    def _run_popup(self) -> None:
        editor = self._editor
        while editor is not None and editor.popup is not None:
            menu, choices = self._build_popup_menu(editor)
            anchor = editor.popup_rect()
            position = QPoint(int(anchor.right), int(anchor.y)) if anchor else QPoint(0, 0)
            chosen = menu.exec(self.mapToGlobal(position))
            if chosen is None or chosen not in choices:
                editor.cancel_popup()
                break

            kind, value = choices[chosen]
            if kind == "signer":
                editor.assign(value)
                self.fields_changed.emit()
            elif kind == "delete":
                editor.remove_target()
                self.fields_changed.emit()
            elif kind == "group":
                editor.select_group(value)
            elif kind == "new_group":
                editor.new_group()
            elif kind == "label":
                text, accepted = QInputDialog.getText(
                    self, "Field Label", "Label:", text=editor.popup.label
                )
                if accepted:
                    editor.set_label(text.strip())
        self.update()

    def _build_popup_menu(self, editor: PlacementEditor) -> tuple[QMenu, dict]:
        menu = QMenu(self)
        choices: dict = {}

        header = menu.addAction("Assign to:")
        header.setEnabled(False)
        signers = editor.signers()
        if not signers:
            hint = menu.addAction("Add signers first.")
            hint.setEnabled(False)
        for index, signer in enumerate(signers):
            action = menu.addAction(f"{index + 1}. {signer.name}")
            choices[action] = ("signer", signer)
        choices[menu.addAction("Unassigned")] = ("signer", None)

        menu.addSeparator()
        popup = editor.popup
        label_text = f"Label: {popup.label}" if popup and popup.label else "Set label..."
        choices[menu.addAction(label_text)] = ("label", None)

        if editor.popup_field_type() is FieldType.RADIO:
            groups = menu.addMenu(f"Group: {popup.group_name}" if popup else "Group")
            for name in editor.group_names():
                action = groups.addAction(name)
                action.setCheckable(True)
                action.setChecked(popup is not None and name == popup.group_name)
                choices[action] = ("group", name)
            groups.addSeparator()
            choices[groups.addAction("New group")] = ("new_group", None)

        if popup is not None and isinstance(popup.target, ExistingField):
            menu.addSeparator()
            choices[menu.addAction("Delete field")] = ("delete", None)

        menu.addSeparator()
        menu.addAction("Cancel")
        return menu, choices
