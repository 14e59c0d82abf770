"""Tests for position markers and their edit tracking."""

from __future__ import annotations

import gc

import pytest

from panepoint.markers import MarkerTracker, PositionMarker


def test_marker_clamps_negative_offsets() -> None:
    marker = PositionMarker("doc", -4)

    assert marker.position == 0


def test_marker_respects_length_limit() -> None:
    marker = PositionMarker("doc", 50, limit=lambda: 10)

    assert marker.position == 10

    marker.move_to(3)
    assert marker.position == 3


def test_insert_before_marker_shifts_it() -> None:
    marker = PositionMarker("doc", 5)

    marker.shift_for_insert(2, 3)

    assert marker.position == 8


def test_insert_at_marker_leaves_it_in_place() -> None:
    marker = PositionMarker("doc", 5)

    marker.shift_for_insert(5, 3)
    marker.shift_for_insert(9, 3)

    assert marker.position == 5


def test_delete_before_marker_pulls_it_back() -> None:
    marker = PositionMarker("doc", 10)

    marker.shift_for_delete(2, 6)

    assert marker.position == 6


def test_delete_spanning_marker_collapses_to_start() -> None:
    marker = PositionMarker("doc", 10)

    marker.shift_for_delete(8, 20)

    assert marker.position == 8


def test_delete_after_marker_is_ignored() -> None:
    marker = PositionMarker("doc", 4)

    marker.shift_for_delete(4, 9)

    assert marker.position == 4


class TestMarkerTracker:
    """Tests for the per-document marker registry."""

    def test_tracker_adjusts_all_live_markers(self) -> None:
        tracker = MarkerTracker("doc")
        early = tracker.create(1)
        late = tracker.create(7)

        tracker.inserted(3, 2)
        tracker.deleted(0, 1)

        assert early.position == 0
        assert late.position == 8

    def test_tracker_forgets_collected_markers(self) -> None:
        tracker = MarkerTracker("doc")
        marker = tracker.create(1)
        assert len(tracker) == 1

        del marker
        gc.collect()

        assert len(tracker) == 0

    def test_adopt_rejects_foreign_markers(self) -> None:
        tracker = MarkerTracker("doc")
        foreign = PositionMarker("other", 0)

        with pytest.raises(ValueError):
            tracker.adopt(foreign)
