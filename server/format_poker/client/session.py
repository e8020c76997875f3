"""A voting client session: API calls, cached state and reconciliation together."""

import logging
import time
from collections.abc import Callable

import httpx

from format_poker.client.api import ApiError, FormatPokerClient
from format_poker.client.cache import LocalStore
from format_poker.client.device import get_device_id
from format_poker.client.state import (
    CatalogState,
    FormatRow,
    VoteCountEvent,
    VoteResult,
    apply_optimistic_toggle,
    merge,
    remove_format,
    replace_catalog,
    set_filters,
    visible_formats,
)

logger = logging.getLogger(__name__)


class CatalogSession:
    """Owns one device's view of the catalog.

    Starts from the local cache so the catalog is usable while the network is
    down; ``refresh`` replaces it with the server's copy when reachable.
    """

    def __init__(
        self,
        client: FormatPokerClient,
        store: LocalStore,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.store = store
        self.clock = clock
        self.device_id = get_device_id(store)

        cached = store.load_rows() or []
        rows = []
        for data in cached:
            try:
                rows.append(FormatRow.from_dict(data))
            except (KeyError, TypeError, ValueError):
                continue
        self.state = CatalogState(
            formats=tuple(rows), voted=frozenset(store.load_voted(self.device_id))
        )

    def _persist(self) -> None:
        self.store.save_rows([row.to_dict() for row in self.state.formats])
        self.store.save_voted(self.device_id, self.state.voted)

    def refresh(self) -> bool:
        """Re-fetch the catalog and this device's votes.

        Returns False (keeping the cached catalog) if the server is unreachable.
        """
        try:
            rows = self.client.list_formats()
            voted_ids = self.client.votes_for_device(self.device_id)
        except (httpx.HTTPError, ApiError) as e:
            logger.warning("Catalog refresh failed, using cached catalog: %s", e)
            return False
        self.state = replace_catalog(self.state, rows, voted_ids)
        self._persist()
        return True

    def vote(self, format_id: str) -> VoteResult | None:
        """Toggle this device's vote on a Requested format.

        The optimistic change is shown immediately. On failure it stays in
        place until the next refresh or live event corrects it.
        """
        self.state, token = apply_optimistic_toggle(self.state, format_id, self.clock())
        if token is None:
            return None
        self._persist()

        try:
            result = self.client.toggle_vote(format_id, self.device_id, token=token)
        except ApiError as e:
            if e.status_code == 404:
                # Deleted on the server since the last refresh
                self.state = remove_format(self.state, format_id)
                self._persist()
            logger.warning("Vote on %s failed: %s", format_id, e)
            return None
        except httpx.HTTPError as e:
            logger.warning("Vote on %s failed: %s", format_id, e)
            return None

        self.state = merge(self.state, result)
        self._persist()
        return result

    def apply_event(self, event: VoteCountEvent) -> None:
        self.state = merge(self.state, event)
        self.store.save_rows([row.to_dict() for row in self.state.formats])

    def follow_live_events(self, max_events: int | None = None) -> int:
        """Apply live events as they arrive. Returns how many were applied."""
        applied = 0
        for event in self.client.iter_live_events():
            self.apply_event(event)
            applied += 1
            if max_events is not None and applied >= max_events:
                break
        return applied

    def set_filters(self, **changes: str) -> None:
        self.state = set_filters(self.state, **changes)

    def visible(self) -> list[FormatRow]:
        return visible_formats(self.state, self.clock())
