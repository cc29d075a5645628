"""Pointer-driven placement editor for one page surface.

The editor is a small state machine fed with ``down``/``move``/``up`` pointer
events in render-space pixels. It never holds more than one gesture: the
current state is a single value, one of ``Idle``, ``Drawing``,
``DragCandidate``, ``DragActive`` or ``PopupOpen``.

Hit-testing on ``down`` checks, in order, the move handle of checkbox/radio
fields, the topmost field body, then empty space. Every lookup only sees
fields whose ``page`` is the editor's page.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import math
from typing import Callable, Union

from signflow.config import EditorConfig
from signflow.model.field import FieldType, FormField
from signflow.model.signer import Signer
from signflow.state.session import FieldNameMinter, FieldStore
from signflow.viewer.geometry import (
    PageMetrics,
    Rect,
    centered_rect,
    clamp_rect,
    field_render_rect,
    rect_from_points,
    to_document_space,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Idle:
    pass


@dataclass(slots=True, frozen=True)
class Drawing:
    start_x: float
    start_y: float
    rect: Rect


@dataclass(slots=True, frozen=True)
class DragCandidate:
    index: int
    origin_x: float
    origin_y: float
    rect: Rect
    travel: float = 0.0
    last_x: float = 0.0
    last_y: float = 0.0


@dataclass(slots=True, frozen=True)
class DragActive:
    index: int
    origin_x: float
    origin_y: float
    rect: Rect
    preview: Rect


@dataclass(slots=True, frozen=True)
class PendingRect:
    rect: Rect
    field_type: FieldType


@dataclass(slots=True, frozen=True)
class ExistingField:
    index: int


@dataclass(slots=True, frozen=True)
class PopupOpen:
    target: PendingRect | ExistingField
    group_name: str | None = None
    label: str = ""


EditorState = Union[Idle, Drawing, DragCandidate, DragActive, PopupOpen]


@dataclass(slots=True, frozen=True)
class Hit:
    kind: str  # "handle" or "body"
    index: int


class PlacementEditor:
    def __init__(
        self,
        store: FieldStore,
        page: int,
        metrics: PageMetrics,
        list_signers: Callable[[], list[Signer]],
        minter: FieldNameMinter | None = None,
        config: EditorConfig | None = None,
        tool: FieldType = FieldType.TEXT,
        on_change: Callable[[], None] | None = None,
        on_gesture_start: Callable[[PlacementEditor], None] | None = None,
    ) -> None:
        self._store = store
        self.page = page
        self.metrics = metrics
        self._list_signers = list_signers
        self._minter = minter or FieldNameMinter()
        self._config = config or EditorConfig()
        self._tool = tool
        self._on_change = on_change
        self._on_gesture_start = on_gesture_start
        self._state: EditorState = Idle()
        self.hover_index: int | None = None

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def active_tool(self) -> FieldType:
        return self._tool

    def set_active_tool(self, tool: FieldType) -> None:
        self._tool = FieldType(tool)
        self.reset()

    def reset(self) -> None:
        self._state = Idle()

    # -- hit testing -------------------------------------------------------

    def visible_fields(self) -> list[tuple[int, FormField, Rect]]:
        return [
            (index, item, field_render_rect(item, self.metrics))
            for index, item in self._store.page_fields(self.page)
        ]

    def handle_rect(self, field_rect: Rect) -> Rect:
        size = self._config.handle_size_px
        return Rect(field_rect.right - size / 2.0, field_rect.y - size / 2.0, size, size)

    def hit_test(self, x: float, y: float) -> Hit | None:
        visible = self.visible_fields()
        for index, item, rect in reversed(visible):
            if item.has_handle and self.handle_rect(rect).contains(x, y):
                return Hit("handle", index)
        for index, _item, rect in reversed(visible):
            if rect.contains(x, y):
                return Hit("body", index)
        return None

    def field_at(self, x: float, y: float) -> int | None:
        hit = self.hit_test(x, y)
        return None if hit is None else hit.index

    # -- pointer events ----------------------------------------------------

    def pointer_down(self, x: float, y: float) -> None:
        if isinstance(self._state, PopupOpen):
            # The click that closes a popup is consumed.
            self.cancel_popup()
            return
        if not isinstance(self._state, Idle):
            self.reset()

        if self._on_gesture_start is not None:
            self._on_gesture_start(self)

        hit = self.hit_test(x, y)
        if hit is not None:
            target = self._store[hit.index]
            rect = field_render_rect(target, self.metrics)
            if hit.kind == "handle" or target.field_type is FieldType.TEXT:
                self._state = DragCandidate(hit.index, x, y, rect, 0.0, x, y)
            else:
                self._open_for_existing(hit.index)
            return

        if self._tool is FieldType.TEXT:
            self._state = Drawing(x, y, Rect(x, y, 0.0, 0.0))
            return

        size = (
            self._config.checkbox_size_px
            if self._tool is FieldType.CHECKBOX
            else self._config.radio_size_px
        )
        rect = self._clamp(centered_rect(x, y, size, size))
        self._open_for_pending(PendingRect(rect, self._tool))

    def pointer_move(self, x: float, y: float) -> None:
        state = self._state
        if isinstance(state, Idle):
            self.hover_index = self.field_at(x, y)
        elif isinstance(state, Drawing):
            end_x = max(0.0, min(x, float(self.metrics.pixel_width)))
            end_y = max(0.0, min(y, float(self.metrics.pixel_height)))
            self._state = replace(state, rect=rect_from_points(state.start_x, state.start_y, end_x, end_y))
        elif isinstance(state, DragCandidate):
            travel = state.travel + math.hypot(x - state.last_x, y - state.last_y)
            if travel > self._config.drag_threshold_px:
                self._state = DragActive(
                    state.index,
                    state.origin_x,
                    state.origin_y,
                    state.rect,
                    self._dragged_rect(state.rect, state.origin_x, state.origin_y, x, y),
                )
            else:
                self._state = replace(state, travel=travel, last_x=x, last_y=y)
        elif isinstance(state, DragActive):
            self._state = replace(
                state,
                preview=self._dragged_rect(state.rect, state.origin_x, state.origin_y, x, y),
            )

    def pointer_up(self, x: float, y: float) -> None:
        state = self._state
        if isinstance(state, Drawing):
            self.pointer_move(x, y)
            rect = self._state.rect  # type: ignore[union-attr]
            if rect.width > self._config.min_text_width_px and rect.height > self._config.min_text_height_px:
                self._open_for_pending(PendingRect(rect, FieldType.TEXT))
            else:
                logger.debug("Discarded %.1fx%.1f px text rectangle", rect.width, rect.height)
                self.reset()
        elif isinstance(state, DragCandidate):
            self.pointer_move(x, y)
            if isinstance(self._state, DragActive):
                self._commit_move(self._state)
            else:
                self._open_for_existing(state.index)
        elif isinstance(state, DragActive):
            self.pointer_move(x, y)
            self._commit_move(self._state)  # type: ignore[arg-type]

    def pointer_leave(self) -> None:
        self.hover_index = None
        if isinstance(self._state, (Drawing, DragCandidate, DragActive)):
            self.reset()

    # -- assignment popup --------------------------------------------------

    @property
    def popup(self) -> PopupOpen | None:
        return self._state if isinstance(self._state, PopupOpen) else None

    def popup_field_type(self) -> FieldType | None:
        popup = self.popup
        if popup is None:
            return None
        if isinstance(popup.target, PendingRect):
            return popup.target.field_type
        return self._store[popup.target.index].field_type

    def popup_rect(self) -> Rect | None:
        popup = self.popup
        if popup is None:
            return None
        if isinstance(popup.target, PendingRect):
            return popup.target.rect
        return field_render_rect(self._store[popup.target.index], self.metrics)

    def signers(self) -> list[Signer]:
        return list(self._list_signers())

    def group_names(self) -> list[str]:
        names = self._store.group_names()
        popup = self.popup
        if popup is not None and popup.group_name and popup.group_name not in names:
            names.append(popup.group_name)
        return names

    def select_group(self, group_name: str) -> None:
        popup = self._require_popup()
        if self.popup_field_type() is not FieldType.RADIO:
            raise ValueError("Only radio fields belong to a group")
        if not group_name:
            raise ValueError("Group name must not be empty")
        self._state = replace(popup, group_name=group_name)

    def new_group(self) -> str:
        popup = self._require_popup()
        extra = [popup.group_name] if popup.group_name else []
        name = self._store.next_group_name(extra)
        self.select_group(name)
        return name

    def set_label(self, label: str) -> None:
        self._state = replace(self._require_popup(), label=label)

    def assign(self, signer: Signer | None) -> FormField:
        popup = self._require_popup()
        signer_id = signer.signer_id if signer is not None else ""
        signer_name = signer.name if signer is not None else ""

        if isinstance(popup.target, ExistingField):
            index = popup.target.index
            patch: dict[str, object] = {
                "assigned_to": signer_id,
                "signer_name": signer_name,
                "label": popup.label,
            }
            if self._store[index].field_type is FieldType.RADIO:
                patch["group_name"] = popup.group_name
            result = self._store.reassign(index, **patch)
        else:
            pending = popup.target
            doc_rect = to_document_space(pending.rect, self.metrics.zoom, self.metrics.page_height_pt)
            result = FormField(
                field_name=self._minter.next_name(pending.field_type, signer_id),
                field_type=pending.field_type,
                page=self.page,
                x=doc_rect.x,
                y=doc_rect.y,
                width=doc_rect.width,
                height=doc_rect.height,
                label=popup.label,
                assigned_to=signer_id,
                signer_name=signer_name,
                group_name=popup.group_name if pending.field_type is FieldType.RADIO else None,
            )
            self._store.add(result)

        self.reset()
        self._changed()
        return result

    def remove_target(self) -> FormField | None:
        popup = self._require_popup()
        self.reset()
        if not isinstance(popup.target, ExistingField):
            return None
        removed = self._store.remove(popup.target.index)
        self.hover_index = None
        self._changed()
        return removed

    def cancel_popup(self) -> None:
        if self.popup is not None:
            self.reset()

    # -- drawing hints -----------------------------------------------------

    def preview_rect(self) -> Rect | None:
        state = self._state
        if isinstance(state, Drawing):
            return state.rect
        if isinstance(state, DragActive):
            return state.preview
        if isinstance(state, PopupOpen) and isinstance(state.target, PendingRect):
            return state.target.rect
        return None

    def dragged_index(self) -> int | None:
        state = self._state
        return state.index if isinstance(state, DragActive) else None

    def cursor_hint(self) -> str:
        state = self._state
        if isinstance(state, PopupOpen):
            return "default"
        if isinstance(state, (DragCandidate, DragActive)):
            return "move"
        if isinstance(state, Drawing) or self.hover_index is None:
            return "crosshair"
        hovered = self._store[self.hover_index]
        return "move" if hovered.field_type is FieldType.TEXT else "pointer"

    # -- internals ---------------------------------------------------------

    def _open_for_pending(self, pending: PendingRect) -> None:
        group_name = None
        if pending.field_type is FieldType.RADIO:
            existing = self._store.group_names()
            group_name = existing[-1] if existing else self._store.next_group_name()
        self._state = PopupOpen(pending, group_name=group_name)

    def _open_for_existing(self, index: int) -> None:
        target = self._store[index]
        self._state = PopupOpen(ExistingField(index), group_name=target.group_name, label=target.label)

    def _require_popup(self) -> PopupOpen:
        popup = self.popup
        if popup is None:
            raise RuntimeError("No assignment popup is open")
        return popup

    def _clamp(self, rect: Rect) -> Rect:
        return clamp_rect(rect, float(self.metrics.pixel_width), float(self.metrics.pixel_height))

    def _dragged_rect(self, rect: Rect, origin_x: float, origin_y: float, x: float, y: float) -> Rect:
        return self._clamp(rect.translated(x - origin_x, y - origin_y))

    def _commit_move(self, state: DragActive) -> None:
        doc_rect = to_document_space(state.preview, self.metrics.zoom, self.metrics.page_height_pt)
        self._store.move(state.index, doc_rect.x, doc_rect.y)
        self.reset()
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


@dataclass(slots=True)
class PlacementSession:
    """Shared state behind the per-page editors of one document."""

    list_signers: Callable[[], list[Signer]]
    config: EditorConfig = field(default_factory=EditorConfig)
    store: FieldStore = field(default_factory=FieldStore)
    minter: FieldNameMinter = field(default_factory=FieldNameMinter)
    on_change: Callable[[], None] | None = None
    active_tool: FieldType = FieldType.TEXT
    editors: dict[int, PlacementEditor] = field(default_factory=dict)

    def reset_document(self, page_count: int | None = None) -> None:
        self.editors.clear()
        self.store.page_count = page_count
        self.store.replace_all([])
        self.minter = FieldNameMinter()

    def load_fields(self, fields: list[FormField]) -> None:
        self.store.replace_all(fields)
        self.minter.sync(item.field_name for item in fields)
        for editor in self.editors.values():
            editor.reset()
            editor.hover_index = None
        self._changed()

    def attach_page(self, page: int, metrics: PageMetrics) -> PlacementEditor:
        editor = PlacementEditor(
            store=self.store,
            page=page,
            metrics=metrics,
            list_signers=self.list_signers,
            minter=self.minter,
            config=self.config,
            tool=self.active_tool,
            on_change=self._changed,
            on_gesture_start=self._gesture_started,
        )
        self.editors[page] = editor
        return editor

    def editor(self, page: int) -> PlacementEditor | None:
        return self.editors.get(page)

    def set_active_tool(self, tool: FieldType) -> None:
        self.active_tool = FieldType(tool)
        for editor in self.editors.values():
            editor.set_active_tool(self.active_tool)

    def remove_field(self, index: int) -> FormField:
        for editor in self.editors.values():
            editor.reset()
            editor.hover_index = None
        removed = self.store.remove(index)
        self._changed()
        return removed

    def _gesture_started(self, source: PlacementEditor) -> None:
        for editor in self.editors.values():
            if editor is not source:
                editor.reset()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
