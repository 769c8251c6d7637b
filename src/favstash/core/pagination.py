"""Page/per-page to LIMIT/OFFSET conversion."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


class InvalidPageError(ValueError):
    """page or per_page is below 1."""

    pass


@dataclass(frozen=True)
class PageWindow:
    page: int
    per_page: int

    @property
    def limit(self) -> int:
        return self.per_page

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def paginate(
    page: Optional[int] = None,
    per_page: Optional[int] = None,
    default_per_page: int = DEFAULT_PER_PAGE,
    max_per_page: int = MAX_PER_PAGE,
) -> PageWindow:
    """Resolve 1-indexed paging parameters.

    Missing values fall back to defaults, per_page above ``max_per_page`` is
    clamped, and values below 1 are rejected.

    Raises:
        InvalidPageError: If page or per_page is less than 1
    """
    page = DEFAULT_PAGE if page is None else page
    per_page = default_per_page if per_page is None else per_page

    if page < 1:
        raise InvalidPageError(f"page must be >= 1, got {page}")
    if per_page < 1:
        raise InvalidPageError(f"per_page must be >= 1, got {per_page}")

    return PageWindow(page=page, per_page=min(per_page, max_per_page))
