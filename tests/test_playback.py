import numpy as np
import pytest

from gendance.core.playback import (
    PlaybackCursor,
    display_labels,
    energy_bar_mask,
    format_clock,
    playback_progress,
    resolve_cursor,
    skeleton_pair,
)
from gendance.core.timeline import TimelineStep, normalize_timeline

ROUTINE = [
    TimelineStep(0.0, "IDLE"),
    TimelineStep(1.0, "DAB"),
    TimelineStep(2.0, "KICK_LEFT"),
]


def test_reference_example():
    cursor = resolve_cursor(ROUTINE, 1.1)
    assert cursor.active_step_index == 1
    assert cursor.blend_factor == pytest.approx(0.5)


def test_time_before_first_step_sits_on_step_zero():
    late = [TimelineStep(2.0, "DAB"), TimelineStep(2.0, "VOGUE"), TimelineStep(3.0, "CLAP")]
    for t in (-5.0, 0.0, 1.99):
        assert resolve_cursor(late, t) == PlaybackCursor(0, 0.0)


@pytest.mark.parametrize("t", [2.0, 2.5, 100.0])
def test_final_step_holds_pose(t):
    assert resolve_cursor(ROUTINE, t) == PlaybackCursor(2, 0.0)


def test_empty_timeline_resolves_to_step_zero():
    assert resolve_cursor([], 3.0) == PlaybackCursor(0, 0.0)


@pytest.mark.parametrize("t", [0.0, 0.5, 7.0, 1000.0])
def test_normalized_empty_timeline_holds_idle(t):
    timeline = normalize_timeline([])
    assert resolve_cursor(timeline, t) == PlaybackCursor(0, 0.0)
    assert skeleton_pair(timeline, resolve_cursor(timeline, t)) == ("IDLE", "IDLE", 0.0)


def test_resolution_is_idempotent():
    for t in np.linspace(-1, 3, 41):
        assert resolve_cursor(ROUTINE, t) == resolve_cursor(ROUTINE, t)


def test_blend_rises_over_first_fifth_then_clamps():
    times = np.linspace(1.0, 1.2, 21)
    blends = [resolve_cursor(ROUTINE, t).blend_factor for t in times]
    assert blends[0] == 0.0
    assert all(a <= b for a, b in zip(blends, blends[1:]))
    assert blends[-1] == pytest.approx(1.0)

    for t in (1.25, 1.5, 1.99):
        assert resolve_cursor(ROUTINE, t).blend_factor == 1.0


def test_blend_speed_is_configurable():
    assert resolve_cursor(ROUTINE, 1.5, blend_speed=1.0).blend_factor == pytest.approx(0.5)


def test_tied_timestamps_choose_later_step():
    timeline = [
        TimelineStep(0.0, "IDLE"),
        TimelineStep(1.0, "DAB"),
        TimelineStep(1.0, "VOGUE"),
        TimelineStep(2.0, "CLAP"),
    ]
    cursor = resolve_cursor(timeline, 1.0)
    assert cursor.active_step_index == 2
    assert cursor.blend_factor == 0.0


def test_seeking_backwards_needs_no_history():
    forward = [resolve_cursor(ROUTINE, t) for t in (0.1, 1.1, 2.1)]
    backward = [resolve_cursor(ROUTINE, t) for t in (2.1, 1.1, 0.1)]
    assert forward == backward[::-1]


def test_skeleton_pair_always_uses_raw_steps():
    assert skeleton_pair(ROUTINE, PlaybackCursor(1, 0.9)) == ("DAB", "KICK_LEFT", 0.9)
    assert skeleton_pair(ROUTINE, PlaybackCursor(2, 0.0)) == ("KICK_LEFT", "KICK_LEFT", 0.0)


def test_skeleton_pair_falls_back_to_idle_for_blank_ids():
    timeline = [TimelineStep(0.0, "")]
    assert skeleton_pair(timeline, PlaybackCursor(0, 0.0)) == ("IDLE", "IDLE", 0.0)


def test_labels_switch_past_midpoint():
    timeline = ROUTINE + [TimelineStep(3.0, "VOGUE")]

    before = resolve_cursor(timeline, 1.05)  # blend 0.25
    assert display_labels(timeline, before) == ("DAB", "KICK_LEFT")

    after = resolve_cursor(timeline, 1.15)  # blend 0.75
    assert display_labels(timeline, after) == ("KICK_LEFT", "VOGUE")
    # The figure is still blending DAB -> KICK_LEFT
    assert skeleton_pair(timeline, after)[:2] == ("DAB", "KICK_LEFT")


def test_label_preview_falls_back_near_the_end():
    cursor = resolve_cursor(ROUTINE, 1.19)
    assert display_labels(ROUTINE, cursor) == ("KICK_LEFT", "KICK_LEFT")


def test_label_at_exact_midpoint_has_not_switched():
    assert display_labels(ROUTINE, PlaybackCursor(1, 0.5)) == ("DAB", "KICK_LEFT")


def test_progress_and_energy_bars():
    assert playback_progress(30.0, 60.0) == 0.5
    assert playback_progress(2.0, 0.0) == 2.0

    bars = energy_bar_mask(100, 30.0, 60.0)
    assert len(bars) == 100
    assert sum(bars) == 51  # bars 0..50
    assert bars[50] and not bars[51]


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0:00"), (9.9, "0:09"), (61.2, "1:01"), (600, "10:00"), (-3, "0:00")],
)
def test_format_clock(seconds, expected):
    assert format_clock(seconds) == expected
