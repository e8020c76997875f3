"""Tests for client-side catalog state and reconciliation."""

from format_poker.client.state import (
    SORT_HOLD_SECONDS,
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


def _row(format_id: str, votes: int = 0, status: str = "Requested", **kwargs) -> FormatRow:
    return FormatRow(
        id=format_id,
        name=kwargs.get("name", format_id.upper()),
        kind=kwargs.get("kind", "image"),
        status=status,
        created_at=kwargs.get("created_at", "2024-01-01T00:00:00"),
        votes=votes,
    )


def _state(*rows: FormatRow, voted=()) -> CatalogState:
    return CatalogState(formats=tuple(rows), voted=frozenset(voted))


def _ids(rows) -> list[str]:
    return [r.id for r in rows]


class TestOptimisticToggle:
    def test_vote_increments_and_marks_pending(self):
        state, token = apply_optimistic_toggle(_state(_row("jxl", 3)), "jxl", now=0.0)
        assert token == 1
        assert state.find("jxl").votes == 4
        assert state.has_voted("jxl")
        assert state.is_pending("jxl")
        assert state.next_token == 2

    def test_unvote_decrements(self):
        state, token = apply_optimistic_toggle(_state(_row("jxl", 3), voted={"jxl"}), "jxl", 0.0)
        assert token == 1
        assert state.find("jxl").votes == 2
        assert not state.has_voted("jxl")

    def test_count_never_goes_negative(self):
        state, _ = apply_optimistic_toggle(_state(_row("jxl", 0), voted={"jxl"}), "jxl", 0.0)
        assert state.find("jxl").votes == 0

    def test_only_requested_formats_are_votable(self):
        original = _state(_row("avif", 2, status="Supported"))
        state, token = apply_optimistic_toggle(original, "avif", 0.0)
        assert token is None
        assert state is original

    def test_unknown_format(self):
        original = _state(_row("jxl"))
        state, token = apply_optimistic_toggle(original, "nope", 0.0)
        assert token is None
        assert state is original

    def test_tokens_increase(self):
        state = _state(_row("jxl", 3))
        state, t1 = apply_optimistic_toggle(state, "jxl", 0.0)
        state, t2 = apply_optimistic_toggle(state, "jxl", 0.1)
        assert t2 > t1
        assert state.pending["jxl"] == t2
        assert state.find("jxl").votes == 3


class TestMerge:
    def test_result_settles_pending_toggle(self):
        state, token = apply_optimistic_toggle(_state(_row("jxl", 3)), "jxl", 0.0)
        state = merge(state, VoteResult("jxl", voted=True, votes=10, token=token))
        assert state.find("jxl").votes == 10
        assert state.has_voted("jxl")
        assert not state.is_pending("jxl")

    def test_result_can_correct_membership(self):
        state, token = apply_optimistic_toggle(_state(_row("jxl", 3)), "jxl", 0.0)
        # Server says this device had already voted, so the toggle removed it
        state = merge(state, VoteResult("jxl", voted=False, votes=2, token=token))
        assert not state.has_voted("jxl")
        assert state.find("jxl").votes == 2

    def test_out_of_order_results_do_not_undo_newer_one(self):
        state = _state(_row("jxl", 3))
        state, t1 = apply_optimistic_toggle(state, "jxl", 0.0)
        state, t2 = apply_optimistic_toggle(state, "jxl", 0.1)

        state = merge(state, VoteResult("jxl", voted=False, votes=3, token=t2))
        state = merge(state, VoteResult("jxl", voted=True, votes=4, token=t1))

        assert not state.has_voted("jxl")
        assert state.find("jxl").votes == 3
        assert not state.is_pending("jxl")

    def test_in_order_results_keep_newer_toggle_pending(self):
        state = _state(_row("jxl", 3))
        state, t1 = apply_optimistic_toggle(state, "jxl", 0.0)
        state, t2 = apply_optimistic_toggle(state, "jxl", 0.1)

        state = merge(state, VoteResult("jxl", voted=True, votes=4, token=t1))
        assert state.is_pending("jxl")

        state = merge(state, VoteResult("jxl", voted=False, votes=3, token=t2))
        assert not state.is_pending("jxl")
        assert not state.has_voted("jxl")

    def test_live_event_updates_count_only(self):
        state = _state(_row("jxl", 3), voted={"jxl"})
        state = merge(state, VoteCountEvent("jxl", 8))
        assert state.find("jxl").votes == 8
        assert state.has_voted("jxl")

    def test_live_event_for_unknown_format_is_ignored(self):
        original = _state(_row("jxl", 3))
        assert merge(original, VoteCountEvent("other", 8)) is original

    def test_broadcast_and_response_order_does_not_matter(self):
        """The live event for our own vote may beat the HTTP response, or not."""
        state, token = apply_optimistic_toggle(_state(_row("jxl", 3)), "jxl", 0.0)
        result = VoteResult("jxl", voted=True, votes=4, token=token)
        event = VoteCountEvent("jxl", 4)

        event_first = merge(merge(state, event), result)
        response_first = merge(merge(state, result), event)

        assert event_first.formats == response_first.formats
        assert event_first.voted == response_first.voted
        assert not event_first.is_pending("jxl")
        assert not response_first.is_pending("jxl")

    def test_live_event_then_result_converges(self):
        state, token = apply_optimistic_toggle(_state(_row("jxl", 3)), "jxl", 0.0)
        # Another device's vote lands first
        state = merge(state, VoteCountEvent("jxl", 4))
        state = merge(state, VoteResult("jxl", voted=True, votes=5, token=token))
        state = merge(state, VoteCountEvent("jxl", 5))
        assert state.find("jxl").votes == 5
        assert state.has_voted("jxl")


class TestVisibleFormats:
    def _catalog(self) -> CatalogState:
        return _state(
            _row("flac", 7, kind="audio", created_at="2024-01-02"),
            _row("av1", 5, kind="video", created_at="2024-01-03"),
            _row("opus", 5, kind="audio", created_at="2024-01-05"),
            _row("wav", 0, kind="audio", status="Planned", created_at="2024-01-04"),
        )

    def test_default_sort(self):
        assert _ids(visible_formats(self._catalog(), 0.0)) == ["flac", "opus", "av1", "wav"]

    def test_filters(self):
        state = set_filters(self._catalog(), kind="audio", status="Requested")
        assert _ids(visible_formats(state, 0.0)) == ["flac", "opus"]
        state = set_filters(self._catalog(), q="  A ")
        assert set(_ids(visible_formats(state, 0.0))) == {"flac", "av1", "wav"}

    def test_other_sorts(self):
        state = set_filters(self._catalog(), sort="name-asc")
        assert _ids(visible_formats(state, 0.0)) == ["av1", "flac", "opus", "wav"]
        state = set_filters(self._catalog(), sort="newest")
        assert _ids(visible_formats(state, 0.0)) == ["opus", "wav", "av1", "flac"]
        state = set_filters(self._catalog(), sort="votes-asc")
        assert _ids(visible_formats(state, 0.0)) == ["wav", "opus", "av1", "flac"]

    def test_invalid_sort_falls_back(self):
        state = set_filters(self._catalog(), sort="random")
        assert state.filters.sort == "votes-desc"

    def test_voted_row_holds_position_then_moves(self):
        state = self._catalog()
        state, _ = apply_optimistic_toggle(state, "av1", now=100.0)
        state, _ = apply_optimistic_toggle(state, "av1", now=100.1)
        state, _ = apply_optimistic_toggle(state, "av1", now=100.2)
        # av1 now has 6 votes but stays put during the hold window
        assert state.find("av1").votes == 6
        assert _ids(visible_formats(state, 100.5)) == ["flac", "opus", "av1", "wav"]

        later = 100.2 + SORT_HOLD_SECONDS + 0.01
        assert _ids(visible_formats(state, later)) == ["flac", "av1", "opus", "wav"]

    def test_filter_change_ends_hold(self):
        state, _ = apply_optimistic_toggle(self._catalog(), "av1", now=100.0)
        state = set_filters(state, sort="votes-desc")
        assert state.hold_until == 0.0
        assert _ids(visible_formats(state, 100.1)) == ["flac", "av1", "opus", "wav"]


class TestCatalogReplacement:
    def test_replace_catalog_drops_pending(self):
        state, _ = apply_optimistic_toggle(_state(_row("jxl", 3)), "jxl", 0.0)
        state = replace_catalog(state, [_row("jxl", 9), _row("tiff", 1)], voted_ids=[])
        assert _ids(state.formats) == ["jxl", "tiff"]
        assert not state.is_pending("jxl")
        assert not state.has_voted("jxl")

    def test_replace_catalog_keeps_membership_when_not_given(self):
        state = replace_catalog(_state(_row("jxl"), voted={"jxl"}), [_row("jxl", 1)])
        assert state.has_voted("jxl")

    def test_remove_format(self):
        state, _ = apply_optimistic_toggle(_state(_row("jxl", 3), _row("tiff")), "jxl", 0.0)
        state = remove_format(state, "jxl")
        assert _ids(state.formats) == ["tiff"]
        assert not state.has_voted("jxl")
        assert not state.is_pending("jxl")

    def test_row_dict_shape(self):
        data = {
            "id": "jxl",
            "name": "JPEG XL (JXL)",
            "kind": "image",
            "status": "Requested",
            "created_at": "2024-01-01T00:00:00",
            "votes": 3,
        }
        assert FormatRow.from_dict(data).to_dict() == data
