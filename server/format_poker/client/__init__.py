from format_poker.client.api import ApiError, FormatPokerClient
from format_poker.client.cache import LocalStore
from format_poker.client.device import get_device_id
from format_poker.client.session import CatalogSession
from format_poker.client.state import (
    CatalogFilters,
    CatalogState,
    FormatRow,
    VoteCountEvent,
    VoteResult,
    apply_optimistic_toggle,
    merge,
    replace_catalog,
    visible_formats,
)

__all__ = [
    "ApiError",
    "FormatPokerClient",
    "LocalStore",
    "get_device_id",
    "CatalogSession",
    "CatalogFilters",
    "CatalogState",
    "FormatRow",
    "VoteCountEvent",
    "VoteResult",
    "apply_optimistic_toggle",
    "merge",
    "replace_catalog",
    "visible_formats",
]
