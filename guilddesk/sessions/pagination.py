"""State machine behind the paginated guild list."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..analytics.pager import DEFAULT_PAGE_SIZE, clamp_page, slice_page, total_pages
from ..database.guild_directory import GuildRecord, sort_by_members

LIST_TIMEOUT = 600.0


class PaginationAction(str, Enum):
    """Events a list session reacts to. Values double as component custom ids."""

    PREVIOUS = "guild_previous"
    NEXT = "guild_next"
    STATS = "guild_stats"
    REFRESH = "guild_refresh"
    TIMEOUT = "timeout"


class PaginationEffect(str, Enum):
    RENDER = "render"
    SHOW_STATS = "show_stats"
    DISABLE_CONTROLS = "disable_controls"


@dataclass(frozen=True)
class PaginationSession:
    """State of one guild list message."""

    invoker_id: int
    collection: Tuple[GuildRecord, ...]
    page_size: int = DEFAULT_PAGE_SIZE
    current_page: int = 0
    total_pages: int = 0
    created_at: float = 0.0
    expires_at: float = 0.0
    timeout: float = LIST_TIMEOUT
    closed: bool = False

    @classmethod
    def open(
        cls,
        invoker_id: int,
        collection: Sequence[GuildRecord],
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = LIST_TIMEOUT,
        now: float = 0.0
    ) -> "PaginationSession":
        """Start on page 0 with the collection sorted by member count."""
        records = sort_by_members(collection)
        return cls(
            invoker_id=invoker_id,
            collection=records,
            page_size=page_size,
            current_page=0,
            total_pages=total_pages(len(records), page_size),
            created_at=now,
            expires_at=now + timeout,
            timeout=timeout,
        )

    @property
    def is_empty(self) -> bool:
        return self.total_pages == 0

    @property
    def has_previous(self) -> bool:
        return self.current_page > 0

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages - 1

    def page_items(self) -> List[GuildRecord]:
        items, _ = slice_page(self.collection, self.current_page, self.page_size)
        return items

    @property
    def page_offset(self) -> int:
        """Index of the first record on the current page."""
        return self.current_page * self.page_size


def transition(
    session: PaginationSession,
    action: PaginationAction,
    *,
    collection: Optional[Sequence[GuildRecord]] = None,
    now: Optional[float] = None
) -> Tuple[PaginationSession, List[PaginationEffect]]:
    """
    Apply one event to a list session.

    Args:
        session: Current state
        action: Event to apply
        collection: Freshly fetched guilds, required for REFRESH
        now: Current clock reading; pushes the inactivity deadline back

    Returns:
        Tuple of (new state, effects the caller has to perform)
    """
    if session.closed:
        return session, []

    if action is PaginationAction.TIMEOUT:
        return replace(session, closed=True), [PaginationEffect.DISABLE_CONTROLS]

    if now is not None:
        session = replace(session, expires_at=now + session.timeout)

    if action is PaginationAction.NEXT:
        if session.has_next:
            session = replace(session, current_page=session.current_page + 1)
        return session, [PaginationEffect.RENDER]

    if action is PaginationAction.PREVIOUS:
        if session.has_previous:
            session = replace(session, current_page=session.current_page - 1)
        return session, [PaginationEffect.RENDER]

    if action is PaginationAction.REFRESH:
        if collection is None:
            raise ValueError("REFRESH requires the freshly fetched collection")
        records = sort_by_members(collection)
        pages = total_pages(len(records), session.page_size)
        session = replace(
            session,
            collection=records,
            total_pages=pages,
            current_page=clamp_page(0, pages),
        )
        return session, [PaginationEffect.RENDER]

    if action is PaginationAction.STATS:
        return session, [PaginationEffect.SHOW_STATS]

    raise ValueError(f"Unknown pagination action: {action!r}")
