"""Background pagination with last-request-wins semantics."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from epub_pager.cache.manager import PaginationCache, paragraphs_fingerprint
from epub_pager.core.paginator import paginate
from epub_pager.core.position_mapper import first_paragraph_of_page, page_for_paragraph
from epub_pager.core.text_measure import TextMeasurer
from epub_pager.models.flattened import Paragraph
from epub_pager.models.pagination import Layout, Page, PageStyle, PaginationKey

log = logging.getLogger(__name__)


class PaginationSession:
    """Keeps the active layout of one book in step with viewport changes.

    Every request is tagged with its key. Jobs run on a worker pool; a
    finished job is applied only if its key is still the one most recently
    requested, otherwise its pages are cached and dropped. The active key and
    pages live in a single ``Layout`` that is swapped as a whole.
    """

    def __init__(
        self,
        paragraphs: list[Paragraph],
        measurer: TextMeasurer,
        style: PageStyle | None = None,
        cache: PaginationCache | None = None,
        on_layout: Callable[[Layout], None] | None = None,
        max_workers: int = 1,
    ):
        self.paragraphs = paragraphs
        self.measurer = measurer
        self.style = style or PageStyle()
        self.cache = cache if cache is not None else PaginationCache()
        self.on_layout = on_layout
        self.fingerprint = paragraphs_fingerprint(paragraphs)

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="paginate"
        )
        self._lock = threading.Lock()
        self._desired: PaginationKey | None = None
        self._active: Layout | None = None
        self._pending: Future | None = None
        self._closed = False

    def __enter__(self) -> "PaginationSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def active(self) -> Layout | None:
        """The layout currently shown, if any."""
        return self._active

    @property
    def desired_key(self) -> PaginationKey | None:
        return self._desired

    def request(
        self, viewport_width: float, viewport_height: float, font_size: float
    ) -> "Future[Layout | None]":
        """Ask for a layout; resolves to the applied layout or None if superseded."""
        key = PaginationKey.build(viewport_width, viewport_height, font_size, self.style)
        outcome: Future = Future()

        with self._lock:
            if self._closed:
                log.debug("Ignoring request for %s on a closed session", key)
                outcome.set_result(None)
                return outcome

            self._desired = key

            if self._active is not None and self._active.key == key:
                outcome.set_result(self._active)
                return outcome

            cached = self.cache.get(key, self.fingerprint)
            if cached is not None:
                log.debug("Layout cache hit for %s", key)
                self._active = cached
                applied = cached
            else:
                applied = None
                # Cancels only jobs that have not started yet
                if self._pending is not None and self._pending.cancel():
                    log.debug("Cancelled queued pagination")
                job = self._executor.submit(
                    paginate, self.paragraphs, key, self.measurer, self.style
                )
                self._pending = job

        if applied is not None:
            self._notify(applied)
            outcome.set_result(applied)
            return outcome

        job.add_done_callback(lambda done: self._complete(key, done, outcome))
        return outcome

    def _complete(self, key: PaginationKey, job: Future, outcome: Future) -> None:
        if job.cancelled():
            outcome.set_result(None)
            return

        error = job.exception()
        if error is not None:
            log.error("Pagination failed for %s: %s", key, error)
            outcome.set_result(None)
            return

        pages: list[Page] = job.result()
        self.cache.put(key, self.fingerprint, pages)

        with self._lock:
            if key != self._desired:
                log.debug("Discarding stale layout for %s", key)
                applied = None
            else:
                applied = Layout(key=key, pages=pages)
                self._active = applied

        if applied is not None:
            self._notify(applied)
        outcome.set_result(applied)

    def _notify(self, layout: Layout) -> None:
        if self.on_layout is None:
            return
        try:
            self.on_layout(layout)
        except Exception as e:
            log.error("Layout callback failed: %s", e)

    def page_for_paragraph(self, paragraph_index: int) -> int:
        layout = self._active
        if layout is None:
            return 0
        return page_for_paragraph(layout.pages, paragraph_index)

    def first_paragraph_of_page(self, page_index: int) -> int:
        layout = self._active
        if layout is None:
            return 0
        return first_paragraph_of_page(layout.pages, page_index)

    def close(self) -> None:
        """Stop accepting work; running jobs finish in the background."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
