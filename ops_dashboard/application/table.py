"""Client-side table engine shared by every dashboard page.

A ``TableEngine`` holds one record collection plus the columns describing how
to show it, and produces ``TableView`` snapshots: the rows of the current page
after search filtering, with every cell already rendered.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Mapping, Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10

STATE_LOADING = "loading"
STATE_EMPTY = "empty"
STATE_READY = "ready"


@dataclass(frozen=True)
class Column(Generic[T]):
    key: str
    label: str
    render: Optional[Callable[[Any, T], Any]] = None


@dataclass(frozen=True)
class TableView(Generic[T]):
    search_term: str
    page_index: int
    page_size: int
    total_records: int
    page_count: int
    loading: bool
    labels: List[str] = field(default_factory=list)
    rows: List[T] = field(default_factory=list)
    cells: List[List[Any]] = field(default_factory=list)

    @property
    def current_page_index(self) -> int:
        return self.page_index

    @property
    def has_next_page(self) -> bool:
        return not self.loading and self.page_index < self.page_count - 1

    @property
    def has_previous_page(self) -> bool:
        return not self.loading and self.page_index > 0

    @property
    def state(self) -> str:
        if self.loading:
            return STATE_LOADING
        if self.total_records == 0:
            return STATE_EMPTY
        return STATE_READY


def field_value(row: Any, key: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def filter_records(records: Sequence[T], search_key: Optional[str], term: Optional[str]) -> List[T]:
    """Keep rows whose ``search_key`` value contains ``term``, ignoring case."""
    if not term or not search_key:
        return list(records)
    needle = term.lower()
    return [r for r in records if needle in to_text(field_value(r, search_key)).lower()]


def count_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total > 0 else 0


def paginate(records: Sequence[T], page_index: int, page_size: int) -> List[T]:
    """Slice one page out of ``records``; past the end yields an empty page."""
    if page_index < 0:
        raise ValueError(f"page index must not be negative, got {page_index}")
    if page_size < 1:
        raise ValueError(f"page size must be positive, got {page_size}")
    start = page_index * page_size
    return list(records[start:start + page_size])


def render_cell(column: Column[T], row: T) -> Any:
    value = field_value(row, column.key)
    if column.render is not None:
        return column.render(value, row)
    return to_text(value)


class TableEngine(Generic[T]):
    def __init__(
        self,
        columns: Sequence[Column[T]],
        records: Sequence[T] = (),
        search_key: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        paginate: bool = True,
        loading: bool = False,
    ):
        if page_size < 1:
            raise ValueError(f"page size must be positive, got {page_size}")
        self.columns = tuple(columns)
        self.search_key = search_key
        self.page_size = page_size
        self.paginated = paginate
        self.loading = loading
        self.search_term = ""
        self.page_index = 0
        self._records: List[T] = list(records)
        self._filtered: List[T] = list(self._records)

    @property
    def records(self) -> List[T]:
        return list(self._records)

    def set_records(self, records: Sequence[T]) -> None:
        """Swap the source collection, keeping the page index when it still exists."""
        self._records = list(records)
        self._refilter()
        last = max(self._page_count() - 1, 0)
        if self.page_index > last:
            self.page_index = last

    def set_loading(self, loading: bool) -> None:
        self.loading = loading

    def search(self, term: Optional[str]) -> None:
        """Filter by ``term`` as typed. A blank or whitespace-only term clears the filter."""
        term = term or ""
        if not term.strip():
            term = ""
        if term != self.search_term:
            self.search_term = term
            self.page_index = 0
            self._refilter()

    def go_to_page(self, page_index: int) -> None:
        if page_index < 0:
            raise ValueError(f"page index must not be negative, got {page_index}")
        self.page_index = page_index

    def next_page(self) -> None:
        if self.page_index < self._page_count() - 1:
            self.page_index += 1

    def previous_page(self) -> None:
        if self.page_index > 0:
            self.page_index -= 1

    def view(self) -> TableView[T]:
        labels = [c.label for c in self.columns]
        size = self._effective_page_size()
        if self.loading:
            return TableView(
                search_term=self.search_term,
                page_index=self.page_index,
                page_size=size,
                total_records=len(self._filtered),
                page_count=self._page_count(),
                loading=True,
                labels=labels,
            )

        rows = paginate(self._filtered, self.page_index, size) if self._filtered else []
        return TableView(
            search_term=self.search_term,
            page_index=self.page_index,
            page_size=size,
            total_records=len(self._filtered),
            page_count=self._page_count(),
            loading=False,
            labels=labels,
            rows=rows,
            cells=[[render_cell(c, row) for c in self.columns] for row in rows],
        )

    def _refilter(self) -> None:
        self._filtered = filter_records(self._records, self.search_key, self.search_term)

    def _effective_page_size(self) -> int:
        if self.paginated:
            return self.page_size
        return max(len(self._filtered), 1)

    def _page_count(self) -> int:
        return count_pages(len(self._filtered), self._effective_page_size())


def build_view(
    records: Sequence[T],
    columns: Sequence[Column[T]],
    search_key: Optional[str] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    loading: bool = False,
    search_term: Optional[str] = None,
    page_index: int = 0,
    paginate: bool = True,
) -> TableView[T]:
    """One-shot form of the engine for request/response pages."""
    engine = TableEngine(columns, records, search_key=search_key, page_size=page_size,
                         paginate=paginate, loading=loading)
    engine.search(search_term)
    engine.go_to_page(page_index)
    return engine.view()
