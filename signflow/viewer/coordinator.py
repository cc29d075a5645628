"""Multi-page render coordinator.

One load task per document renders every page at the session zoom, then runs
the detected-fields import, and reports once every page has metrics. Starting
another load (or closing) bumps the generation token and cancels the running
task; results carrying an older generation are discarded at delivery time so
a replaced document can never leak pages or fields into the current one.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass, field
import logging
import threading
from typing import Callable

from signflow.model.document import PdfDocument
from signflow.model.field import FormField
from signflow.pdf.importer import PdfImportError, import_pdf_fields
from signflow.pdf.loader import PdfLoadError, load_pdf_bytes
from signflow.pdf.renderer import PdfRenderError, RenderedPage, render_page
from signflow.viewer.geometry import PageMetrics

logger = logging.getLogger(__name__)

RenderFn = Callable[[PdfDocument, int, float], RenderedPage]
DetectFn = Callable[[bytes], list[FormField]]
OpenFn = Callable[[bytes], PdfDocument]
Dispatch = Callable[[Callable[[], None]], None]


@dataclass(slots=True, frozen=True)
class DocumentReady:
    generation: int
    metrics: tuple[PageMetrics, ...]
    fields: list[FormField]
    import_error: PdfImportError | None = None

    @property
    def page_count(self) -> int:
        return len(self.metrics)


@dataclass(slots=True)
class _LoadTask:
    generation: int
    data: bytes
    cancel_event: threading.Event = field(default_factory=threading.Event)
    future: Future | None = None


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class RenderCoordinator:
    def __init__(
        self,
        zoom: float = 1.5,
        *,
        render: RenderFn = render_page,
        detect: DetectFn | None = import_pdf_fields,
        open_document: OpenFn = load_pdf_bytes,
        dispatch: Dispatch = _call_now,
        max_workers: int = 2,
        on_page_rendered: Callable[[int, RenderedPage], None] | None = None,
        on_document_ready: Callable[[DocumentReady], None] | None = None,
        on_load_failed: Callable[[Exception], None] | None = None,
    ) -> None:
        if zoom <= 0:
            raise ValueError(f"zoom must be positive, got {zoom}")
        self.zoom = zoom
        self._render = render
        self._detect = detect
        self._open_document = open_document
        self._dispatch = dispatch
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="render")
        self.on_page_rendered = on_page_rendered
        self.on_document_ready = on_document_ready
        self.on_load_failed = on_load_failed

        self._generation = 0
        self._task: _LoadTask | None = None
        self._pages: dict[int, RenderedPage] = {}
        self._metrics: tuple[PageMetrics, ...] = ()
        self._ready = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def metrics(self) -> tuple[PageMetrics, ...]:
        return self._metrics

    @property
    def is_ready(self) -> bool:
        return self._ready

    def page(self, page_index: int) -> RenderedPage | None:
        return self._pages.get(page_index)

    def load(self, data: bytes) -> int:
        self.cancel()
        task = _LoadTask(generation=self._generation, data=bytes(data))
        self._task = task
        task.future = self._executor.submit(self._run, task)
        logger.debug("Started document load generation %d", task.generation)
        return task.generation

    def cancel(self) -> None:
        previous = self._task
        self._generation += 1
        self._task = None
        self._pages = {}
        self._metrics = ()
        self._ready = False
        if previous is not None:
            previous.cancel_event.set()
            if previous.future is not None and not previous.future.done():
                previous.future.cancel()
            logger.debug("Cancelled document load generation %d", previous.generation)

    def wait(self, timeout: float | None = None) -> bool:
        task = self._task
        if task is None or task.future is None:
            return True
        done, _pending = wait_futures([task.future], timeout=timeout)
        return bool(done)

    def close(self) -> None:
        self.cancel()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def is_current(self, generation: int) -> bool:
        task = self._task
        return (
            task is not None
            and task.generation == generation
            and generation == self._generation
            and not task.cancel_event.is_set()
        )

    # -- worker side -------------------------------------------------------

    def _run(self, task: _LoadTask) -> None:
        try:
            document = self._open_document(task.data)
        except PdfLoadError as exc:
            self._deliver(task, self._apply_failure, exc)
            return

        try:
            rendered: list[RenderedPage] = []
            for page_index in range(document.page_count):
                if task.cancel_event.is_set():
                    return
                page = self._render(document, page_index, self.zoom)
                rendered.append(page)
                self._deliver(task, self._apply_page, page_index, page)

            if task.cancel_event.is_set():
                return

            detected: list[FormField] = []
            import_error: PdfImportError | None = None
            if self._detect is not None:
                try:
                    detected = self._detect(task.data)
                except PdfImportError as exc:
                    logger.warning("Detected-fields import failed: %s", exc)
                    import_error = exc

            ready = DocumentReady(
                generation=task.generation,
                metrics=tuple(page.metrics() for page in rendered),
                fields=detected,
                import_error=import_error,
            )
            self._deliver(task, self._apply_ready, ready)
        except PdfRenderError as exc:
            self._deliver(task, self._apply_failure, exc)
        finally:
            document.close()

    def _deliver(self, task: _LoadTask, apply: Callable, *args) -> None:
        def deliver() -> None:
            if not self.is_current(task.generation):
                logger.debug("Discarding stale result from generation %d", task.generation)
                return
            apply(*args)

        self._dispatch(deliver)

    # -- delivery side -----------------------------------------------------

    def _apply_page(self, page_index: int, page: RenderedPage) -> None:
        self._pages[page_index] = page
        if self.on_page_rendered is not None:
            self.on_page_rendered(page_index, page)

    def _apply_ready(self, ready: DocumentReady) -> None:
        self._metrics = ready.metrics
        self._ready = True
        logger.info("Document ready: %d page(s), %d detected field(s)",
                    ready.page_count, len(ready.fields))
        if self.on_document_ready is not None:
            self.on_document_ready(ready)

    def _apply_failure(self, exc: Exception) -> None:
        logger.error("Document load failed: %s", exc)
        if self.on_load_failed is not None:
            self.on_load_failed(exc)
