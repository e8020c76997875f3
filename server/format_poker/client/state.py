"""Catalog state for a voting client and its pure transitions.

Every function here takes a ``CatalogState`` and returns a new one; nothing
performs I/O. Authoritative data (a toggle response or a live event) is folded
in through ``merge`` only.

Counts follow last-writer-wins: an optimistic click adjusts the displayed
counter at once, and the next authoritative value for that format replaces
it. Membership ("this device voted") is device-local knowledge: toggle
responses set it, live events never touch it.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

REQUESTED = "Requested"

# Keep a just-voted row in place while its counter changes
SORT_HOLD_SECONDS = 1.5

SORTS = ("votes-desc", "votes-asc", "name-asc", "name-desc", "newest")


@dataclass(frozen=True)
class FormatRow:
    id: str
    name: str
    kind: str
    status: str
    created_at: str
    votes: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormatRow":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            kind=str(data["kind"]),
            status=str(data["status"]),
            created_at=str(data.get("created_at", "")),
            votes=int(data.get("votes") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "status": self.status,
            "created_at": self.created_at,
            "votes": self.votes,
        }


@dataclass(frozen=True)
class CatalogFilters:
    q: str = ""
    kind: str = ""
    status: str = ""
    sort: str = "votes-desc"


@dataclass(frozen=True)
class VoteResult:
    """Authoritative answer to one toggle request."""

    format_id: str
    voted: bool
    votes: int
    token: int | None = None


@dataclass(frozen=True)
class VoteCountEvent:
    """Live update: the committed counter of one format."""

    format_id: str
    votes: int


def _frozen(mapping: Mapping[str, int] | None = None) -> Mapping[str, int]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class CatalogState:
    formats: tuple[FormatRow, ...] = ()
    voted: frozenset[str] = frozenset()
    filters: CatalogFilters = CatalogFilters()
    # format id -> token of the newest toggle still awaiting its response
    pending: Mapping[str, int] = field(default_factory=_frozen)
    # format id -> token of the newest response already merged
    settled: Mapping[str, int] = field(default_factory=_frozen)
    next_token: int = 1
    hold_until: float = 0.0
    held_order: tuple[str, ...] = ()

    def find(self, format_id: str) -> FormatRow | None:
        for row in self.formats:
            if row.id == format_id:
                return row
        return None

    def has_voted(self, format_id: str) -> bool:
        return format_id in self.voted

    def is_pending(self, format_id: str) -> bool:
        return format_id in self.pending


def _with_votes(rows: Iterable[FormatRow], format_id: str, votes: int) -> tuple[FormatRow, ...]:
    return tuple(
        replace(row, votes=max(votes, 0)) if row.id == format_id else row for row in rows
    )


def _filtered(state: CatalogState) -> list[FormatRow]:
    q = state.filters.q.strip().lower()
    return [
        row
        for row in state.formats
        if (not q or q in row.name.lower())
        and (not state.filters.kind or row.kind == state.filters.kind)
        and (not state.filters.status or row.status == state.filters.status)
    ]


def _sorted(rows: list[FormatRow], sort: str) -> list[FormatRow]:
    # Stable sorts: apply the tie-breaker first
    if sort == "votes-asc":
        rows = sorted(rows, key=lambda r: r.created_at, reverse=True)
        return sorted(rows, key=lambda r: r.votes)
    if sort == "name-asc":
        return sorted(rows, key=lambda r: r.name.casefold())
    if sort == "name-desc":
        return sorted(rows, key=lambda r: r.name.casefold(), reverse=True)
    if sort == "newest":
        return sorted(rows, key=lambda r: r.created_at, reverse=True)
    rows = sorted(rows, key=lambda r: r.created_at, reverse=True)
    return sorted(rows, key=lambda r: r.votes, reverse=True)


def visible_formats(state: CatalogState, now: float) -> list[FormatRow]:
    """Filtered and sorted rows as they should be displayed at ``now``.

    Inside the hold window rows that were visible when the vote was cast keep
    their positions; anything else follows in normal sort order.
    """
    rows = _sorted(_filtered(state), state.filters.sort)
    if now >= state.hold_until or not state.held_order:
        return rows
    position = {format_id: index for index, format_id in enumerate(state.held_order)}
    held = sorted((r for r in rows if r.id in position), key=lambda r: position[r.id])
    rest = [r for r in rows if r.id not in position]
    return held + rest


def set_filters(state: CatalogState, **changes: str) -> CatalogState:
    filters = replace(state.filters, **changes)
    if filters.sort not in SORTS:
        filters = replace(filters, sort="votes-desc")
    # A new filter or sort ends any hold window
    return replace(state, filters=filters, hold_until=0.0, held_order=())


def apply_optimistic_toggle(
    state: CatalogState, format_id: str, now: float
) -> tuple[CatalogState, int | None]:
    """Flip membership and nudge the counter before the server answers.

    Returns the new state and the token to attach to the eventual
    ``VoteResult``; the token is None (and the state unchanged) when the
    format is unknown or not open for votes.
    """
    row = state.find(format_id)
    if row is None or row.status != REQUESTED:
        return state, None

    token = state.next_token
    voting = format_id not in state.voted
    voted = state.voted | {format_id} if voting else state.voted - {format_id}
    delta = 1 if voting else -1
    held_order = tuple(r.id for r in visible_formats(state, now))

    return (
        replace(
            state,
            formats=_with_votes(state.formats, format_id, row.votes + delta),
            voted=voted,
            pending=_frozen({**state.pending, format_id: token}),
            next_token=token + 1,
            hold_until=now + SORT_HOLD_SECONDS,
            held_order=held_order,
        ),
        token,
    )


def merge(state: CatalogState, update: VoteResult | VoteCountEvent) -> CatalogState:
    """Fold authoritative data into the state.

    - ``VoteCountEvent`` replaces the format's counter and nothing else.
    - ``VoteResult`` replaces the counter and this device's membership. A
      result older than one already merged for the same format is ignored, so
      responses to rapid double clicks cannot undo each other out of order.
    """
    if isinstance(update, VoteCountEvent):
        row = state.find(update.format_id)
        if row is None or row.votes == update.votes:
            return state
        return replace(state, formats=_with_votes(state.formats, update.format_id, update.votes))

    format_id = update.format_id
    token = update.token
    if token is not None and token <= state.settled.get(format_id, 0):
        return state

    voted = state.voted | {format_id} if update.voted else state.voted - {format_id}
    pending = dict(state.pending)
    if token is None or pending.get(format_id, 0) <= token:
        pending.pop(format_id, None)
    settled = dict(state.settled)
    if token is not None:
        settled[format_id] = token

    return replace(
        state,
        formats=_with_votes(state.formats, format_id, update.votes),
        voted=frozenset(voted),
        pending=_frozen(pending),
        settled=_frozen(settled),
    )


def replace_catalog(
    state: CatalogState,
    rows: Iterable[FormatRow],
    voted_ids: Iterable[str] | None = None,
) -> CatalogState:
    """Adopt a full catalog fetch as the new truth; in-flight guesses are dropped."""
    return replace(
        state,
        formats=tuple(rows),
        voted=frozenset(voted_ids) if voted_ids is not None else state.voted,
        pending=_frozen(),
    )


def remove_format(state: CatalogState, format_id: str) -> CatalogState:
    return replace(
        state,
        formats=tuple(r for r in state.formats if r.id != format_id),
        voted=state.voted - {format_id},
        pending=_frozen({k: v for k, v in state.pending.items() if k != format_id}),
    )
