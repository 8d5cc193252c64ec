"""Page arithmetic for guild listings."""

import math
from typing import List, Sequence, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10


def total_pages(item_count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Number of pages needed for ``item_count`` items (0 for none)."""
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return math.ceil(item_count / page_size)


def clamp_page(page: int, page_count: int) -> int:
    """Clamp a 0-based page index into ``[0, page_count - 1]`` (0 when there are no pages)."""
    if page_count <= 0:
        return 0
    return max(0, min(page, page_count - 1))


def slice_page(
    collection: Sequence[T],
    page: int,
    page_size: int = DEFAULT_PAGE_SIZE
) -> Tuple[List[T], int]:
    """
    Return the items on a page together with the total page count.

    Out-of-range pages yield an empty list instead of raising; callers clamp
    with :func:`clamp_page` first.

    Args:
        collection: Ordered items
        page: 0-based page index
        page_size: Items per page, must be positive

    Returns:
        Tuple of (items on the page, total pages)
    """
    pages = total_pages(len(collection), page_size)
    if page < 0 or page >= pages:
        return [], pages

    start = page * page_size
    return list(collection[start:start + page_size]), pages
