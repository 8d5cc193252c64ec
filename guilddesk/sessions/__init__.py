"""Interactive session state for GuildDesk."""

from .gate import InteractionGate
from .registry import SessionEntry, SessionRegistry, session_key
from .pagination import PaginationAction, PaginationEffect, PaginationSession
from .confirmation import (
    ConfirmationAction,
    ConfirmationEffect,
    ConfirmationOutcome,
    ConfirmationSession,
)
from .detail import DetailAction, DetailEffect, DetailSession

__all__ = [
    "InteractionGate",
    "SessionEntry",
    "SessionRegistry",
    "session_key",
    "PaginationAction",
    "PaginationEffect",
    "PaginationSession",
    "ConfirmationAction",
    "ConfirmationEffect",
    "ConfirmationOutcome",
    "ConfirmationSession",
    "DetailAction",
    "DetailEffect",
    "DetailSession",
]
