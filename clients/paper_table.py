# clients/paper_table.py
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from utils.cancellation import CancellationToken, RequestCancelled, RequestSlot

logger = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (25, 50, 100, 250)
DEFAULT_PAGE_SIZE = 100

# fetch_page(filters, page, limit, token) -> {"count", "totalPages", "results", ...}
FetchPage = Callable[[Optional[Mapping[str, str]], int, int, CancellationToken], Dict[str, Any]]


class TableStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


@dataclass
class TableState:
    status: TableStatus = TableStatus.IDLE
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    count: int = 0
    total_pages: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def loading(self) -> bool:
        return self.status == TableStatus.LOADING

    @property
    def is_empty(self) -> bool:
        return not self.results

    @property
    def start_row(self) -> int:
        if self.count == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_row(self) -> int:
        return min(self.page * self.page_size, self.count)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class PaperTable:
    """
    Paginated table model driven by a remote page source.

    Holds a single in-flight request slot: each reload cancels the previous
    request, and results from a superseded request are dropped without
    touching state. Every page view re-fetches; nothing is cached.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        filters: Optional[Mapping[str, str]] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        executor=None,
        on_change: Optional[Callable[[TableState], None]] = None,
        on_failure: Optional[Callable[[Exception], None]] = None,
    ):
        self._fetch_page = fetch_page
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"Invalid page size: {page_size}")
        self._executor = executor
        self._on_change = on_change
        self._on_failure = on_failure
        self._slot = RequestSlot()
        self._lock = threading.Lock()

        self.filters: Dict[str, str] = dict(filters or {})
        self.state = TableState(page_size=page_size)

    # ----------------------------------------------------
    # Transitions
    # ----------------------------------------------------
    def load(self):
        """Cancel any in-flight request and fetch the current page."""
        with self._lock:
            token = self._slot.begin()
            self.state.status = TableStatus.LOADING
            page, page_size = self.state.page, self.state.page_size
            filters = dict(self.filters)
        self._notify()

        args = (token, filters, page, page_size)
        if self._executor is None:
            # one thread per load; a hung stale request never delays a newer one
            threading.Thread(target=self._run, args=args, name="paper-table-load", daemon=True).start()
        else:
            self._executor.submit(self._run, *args)

    def go_to_page(self, page: int):
        with self._lock:
            last = max(self.state.total_pages, 1)
            self.state.page = max(1, min(int(page), last))
        self.load()

    def first_page(self):
        self.go_to_page(1)

    def previous_page(self):
        with self._lock:
            page = self.state.page
        self.go_to_page(page - 1)

    def next_page(self):
        with self._lock:
            page = self.state.page
        self.go_to_page(page + 1)

    def last_page(self):
        with self._lock:
            last = self.state.total_pages
        self.go_to_page(last)

    def set_page_size(self, page_size: int):
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"Invalid page size: {page_size}")
        with self._lock:
            self.state.page_size = page_size
            self.state.page = 1
        self.load()

    def reset(self, filters: Optional[Mapping[str, str]] = None):
        """New filter set: discard all state and start again from page 1."""
        self._slot.cancel()
        with self._lock:
            self.filters = dict(filters or {})
            self.state = TableState()
        self.load()

    def close(self):
        self._slot.cancel()
        shutdown = getattr(self._executor, "shutdown", None)
        if shutdown is not None:
            shutdown(wait=False)

    def snapshot(self) -> TableState:
        with self._lock:
            return TableState(
                status=self.state.status,
                page=self.state.page,
                page_size=self.state.page_size,
                count=self.state.count,
                total_pages=self.state.total_pages,
                results=list(self.state.results),
            )

    # ----------------------------------------------------
    # Request handling
    # ----------------------------------------------------
    def _run(self, token: CancellationToken, filters: Dict[str, str], page: int, page_size: int):
        try:
            data = self._fetch_page(filters or None, page, page_size, token)
        except RequestCancelled:
            logger.debug(f"Request for page {page} cancelled")
            return
        except Exception as e:
            self._apply_failure(token, e)
            return
        self._apply_result(token, data)

    def _apply_result(self, token: CancellationToken, data: Dict[str, Any]):
        with self._lock:
            if not self._slot.is_current(token):
                return
            self.state.status = TableStatus.LOADED
            self.state.count = data.get("count", 0)
            self.state.total_pages = data.get("totalPages", 0)
            self.state.results = list(data.get("results") or [])
        self._notify()

    def _apply_failure(self, token: CancellationToken, error: Exception):
        with self._lock:
            if not self._slot.is_current(token):
                return
            self.state.status = TableStatus.ERRORED
            self.state.count = 0
            self.state.total_pages = 0
            self.state.results = []
        logger.error(f"Failed to load page: {error}")
        self._notify()
        if self._on_failure:
            self._on_failure(error)

    def _notify(self):
        if self._on_change:
            self._on_change(self.snapshot())
