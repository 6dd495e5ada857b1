"""Page containers and the page-window renderer used by the listing view."""

from dataclasses import dataclass, field
from math import ceil
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")

DEFAULT_WINDOW_SIZE = 10


@dataclass(frozen=True)
class Page(Generic[T]):
    """One slice of a larger result set.

    Attributes:
        content: Records on this page.
        number: 0-based page index.
        size: Requested page size.
        total_elements: Number of records across all pages.
    """

    content: List[T]
    number: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return ceil(self.total_elements / self.size)


@dataclass(frozen=True)
class PageItem:
    """A single page link in the rendered window."""

    number: int
    url: str
    current: bool = False

    @property
    def label(self) -> int:
        """1-based page number shown to the user."""
        return self.number + 1


@dataclass(frozen=True)
class PageRender:
    """Navigation metadata for one listing page."""

    url_template: str
    current: int
    total_pages: int
    items: List[PageItem] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.total_pages > 0 and self.current > 0

    @property
    def has_next(self) -> bool:
        return self.current < self.total_pages - 1

    @property
    def is_first(self) -> bool:
        return self.current == 0

    @property
    def is_last(self) -> bool:
        return self.total_pages == 0 or self.current >= self.total_pages - 1

    @property
    def show_first(self) -> bool:
        """True when page 0 falls outside the shown window."""
        return bool(self.items) and self.items[0].number > 0

    @property
    def show_last(self) -> bool:
        """True when the last page falls outside the shown window."""
        return bool(self.items) and self.items[-1].number < self.total_pages - 1

    def link(self, number: int) -> str:
        return self.url_template.format(page=number)

    @property
    def first_url(self) -> Optional[str]:
        return self.link(0) if self.total_pages > 0 else None

    @property
    def last_url(self) -> Optional[str]:
        return self.link(self.total_pages - 1) if self.total_pages > 0 else None

    @property
    def previous_url(self) -> Optional[str]:
        """Page before the current one, or the last page when past the end."""
        if not self.has_previous:
            return None
        return self.link(min(self.current, self.total_pages) - 1)

    @property
    def next_url(self) -> Optional[str]:
        return self.link(self.current + 1) if self.has_next else None

    @property
    def numbers(self) -> List[int]:
        return [item.number for item in self.items]


def window_bounds(current: int, total_pages: int, window_size: int = DEFAULT_WINDOW_SIZE) -> tuple[int, int]:
    """Return the half-open ``[start, end)`` range of page indices to display.

    The window keeps ``current`` roughly centred and is clamped to
    ``[0, total_pages)``.
    """
    if window_size <= 0:
        raise ValueError("window_size must be positive")
    if total_pages <= 0:
        return 0, 0

    half = window_size // 2
    if total_pages <= window_size:
        return 0, total_pages
    if current <= half:
        return 0, window_size
    if current >= total_pages - half:
        return total_pages - window_size, total_pages

    start = current - half
    return start, start + window_size


def render_page(
    page: Page,
    url_template: str = "/listar?page={page}",
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> PageRender:
    """Build the navigation metadata for ``page``.

    Args:
        page: The page returned by the repository.
        url_template: Link template; ``{page}`` is replaced by the 0-based index.
        window_size: Maximum number of page links shown at once.

    Returns:
        PageRender: Window items plus first/previous/next/last metadata.
    """
    total_pages = page.total_pages
    start, end = window_bounds(page.number, total_pages, window_size)
    items = [
        PageItem(number=n, url=url_template.format(page=n), current=n == page.number)
        for n in range(start, end)
    ]
    return PageRender(
        url_template=url_template,
        current=page.number,
        total_pages=total_pages,
        items=items,
    )
