"""
Playback Position Resolver.

Maps playback time onto the timeline: which step is active and how far
the figure has blended toward the next one. Resolution is stateless, so
pausing and seeking need no special handling.

Two read paths sit on top of the cursor and are kept apart on purpose:
- skeleton_pair(): what the figure actually renders (raw current/next)
- display_labels(): what the move caption says, which flips to the
  upcoming move once the blend passes its midpoint
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .timeline import IDLE_POSE, TimelineStep

DEFAULT_BLEND_SPEED = 5.0  # Transition completes in 1/5 of the segment
DEFAULT_LABEL_SWITCH = 0.5


@dataclass(frozen=True)
class PlaybackCursor:
    """Where playback is on the timeline at one instant."""

    active_step_index: int = 0
    blend_factor: float = 0.0


def resolve_cursor(
    timeline: Sequence[TimelineStep],
    current_time: float,
    blend_speed: float = DEFAULT_BLEND_SPEED,
) -> PlaybackCursor:
    """Resolve (timeline, time) into a cursor.

    The active step is the last one whose timestamp is <= current_time;
    ties go to the later step. Before the first step the cursor sits on
    step 0 with no blend. On the final step the pose is held (blend 0).
    A non-positive segment length is an instant cut (blend 1).
    """
    if not timeline or current_time < timeline[0].timestamp:
        return PlaybackCursor(0, 0.0)

    index = 0
    for i, step in enumerate(timeline):
        if step.timestamp <= current_time:
            index = i
        else:
            break

    if index + 1 >= len(timeline):
        return PlaybackCursor(index, 0.0)

    current = timeline[index]
    duration = timeline[index + 1].timestamp - current.timestamp
    if duration <= 0:
        return PlaybackCursor(index, 1.0)

    elapsed = current_time - current.timestamp
    blend = min(1.0, max(0.0, (elapsed / duration) * blend_speed))
    return PlaybackCursor(index, blend)


def _pose_at(timeline: Sequence[TimelineStep], index: int) -> str | None:
    if 0 <= index < len(timeline) and timeline[index].pose_id:
        return timeline[index].pose_id
    return None


def skeleton_pair(
    timeline: Sequence[TimelineStep],
    cursor: PlaybackCursor,
) -> tuple[str, str, float]:
    """(current pose, next pose, blend) for the figure.

    Always the raw pair at the cursor, whatever the blend.
    """
    current = _pose_at(timeline, cursor.active_step_index) or IDLE_POSE
    upcoming = _pose_at(timeline, cursor.active_step_index + 1) or current
    return current, upcoming, cursor.blend_factor


def display_labels(
    timeline: Sequence[TimelineStep],
    cursor: PlaybackCursor,
    switch_at: float = DEFAULT_LABEL_SWITCH,
) -> tuple[str, str]:
    """(current move, next move) captions.

    Past the switch point the caption names the move the figure is
    visibly turning into and previews the one after it.
    """
    current, upcoming, blend = skeleton_pair(timeline, cursor)
    if blend > switch_at:
        after = _pose_at(timeline, cursor.active_step_index + 2) or upcoming
        return upcoming, after
    return current, upcoming


def playback_progress(current_time: float, duration: float) -> float:
    """Fraction of the track played; a zero duration counts as one second."""
    return current_time / (duration or 1.0)


def energy_bar_mask(bar_count: int, current_time: float, duration: float) -> list[bool]:
    """Which energy bars are lit: bar k is lit once k / bar_count <= progress."""
    progress = playback_progress(current_time, duration)
    return [k / bar_count <= progress for k in range(bar_count)]


def format_clock(seconds: float) -> str:
    """m:ss display of the playback position."""
    seconds = max(0.0, seconds)
    return f"{int(seconds // 60)}:{int(seconds % 60):02d}"
