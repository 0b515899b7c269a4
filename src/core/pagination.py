"""
Offset pagination helpers.

Supabase/PostgREST paginates with an inclusive ``range(from, to)``; every
paged list (recommendation feed, search history) derives its bounds here.
"""

from typing import NamedTuple


class PageRange(NamedTuple):
    """Inclusive row bounds for one page."""
    from_: int
    to: int

    @property
    def size(self) -> int:
        return self.to - self.from_ + 1


def get_range(page: int, per_page: int) -> PageRange:
    """
    Compute the inclusive row range of a 1-based page.

    Both arguments are floored to 1 first, so page 0 (or a missing page) maps
    to the first page and a zero page size still yields one row.

    Examples:
        >>> get_range(1, 4)
        PageRange(from_=0, to=3)
        >>> get_range(3, 4)
        PageRange(from_=8, to=11)
        >>> get_range(0, 4)
        PageRange(from_=0, to=3)
    """
    safe_page = max(int(page or 1), 1)
    safe_per_page = max(int(per_page or 1), 1)
    return PageRange(
        from_=(safe_page - 1) * safe_per_page,
        to=safe_page * safe_per_page - 1,
    )
