"""
Timeline Normalizer.

The choreography generator is untrusted: its output may be empty, not
start at zero, be out of order, or not be JSON at all. This module turns
whatever comes back into a timeline playback can always use.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from .errors import MalformedTimeline

logger = logging.getLogger(__name__)

IDLE_POSE = "IDLE"


@dataclass(frozen=True)
class TimelineStep:
    """One pose change: switch to pose_id at timestamp seconds."""

    timestamp: float
    pose_id: str

    def to_dict(self) -> dict[str, Any]:
        """Wire form used by the generator and the UI."""
        return {"timestamp": self.timestamp, "poseName": self.pose_id}


Timeline = list[TimelineStep]

FALLBACK_TIMELINE: tuple[TimelineStep, ...] = (TimelineStep(0.0, IDLE_POSE),)


class TimelineStepPayload(BaseModel):
    """Schema for one step as returned by the generator."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    timestamp: float = Field(allow_inf_nan=False)
    pose_name: str = Field(alias="poseName")

    @model_validator(mode="before")
    @classmethod
    def _accept_pose_id(cls, data: Any) -> Any:
        # Hand-written timelines sometimes say poseId instead of poseName
        if isinstance(data, dict) and "poseName" not in data and "poseId" in data:
            data = {**data, "poseName": data["poseId"]}
        return data


_PAYLOAD_ADAPTER = TypeAdapter(list[TimelineStepPayload])


@dataclass
class TimelineLoadResult:
    """A playable timeline plus an optional notice for the UI."""

    timeline: Timeline
    notice: Optional[str] = None

    @property
    def recovered(self) -> bool:
        return self.notice is not None


def parse_timeline(payload: Any) -> Timeline:
    """Read generator output into timeline steps.

    Args:
        payload: JSON text/bytes, or an already-decoded list of dicts

    Raises:
        MalformedTimeline: the payload is not a list of
            {timestamp: number, poseName: string} objects
    """
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedTimeline(f"Response is not JSON: {e}") from e

    try:
        steps = _PAYLOAD_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise MalformedTimeline(f"Response is not a list of timeline steps: {e.error_count()} error(s)") from e

    return [TimelineStep(float(s.timestamp), s.pose_name) for s in steps]


def normalize_timeline(steps: Iterable[TimelineStep]) -> Timeline:
    """Make a timeline safe to play.

    - negative timestamps are clamped to 0
    - steps are stably sorted, so ties keep their original order
    - an IDLE step at t=0 is prepended when the timeline is empty or
      starts later than 0

    Pose ids are not checked here; the renderer falls back to IDLE.
    """
    clamped = [
        step if step.timestamp >= 0 else TimelineStep(0.0, step.pose_id)
        for step in steps
    ]
    ordered = sorted(clamped, key=lambda step: step.timestamp)

    if not ordered or ordered[0].timestamp > 0:
        ordered.insert(0, TimelineStep(0.0, IDLE_POSE))

    return ordered


def load_timeline(payload: Any) -> TimelineLoadResult:
    """Parse and normalize generator output, never failing.

    A malformed payload becomes the single IDLE step with a notice, so
    playback can still start (with a static figure).
    """
    try:
        steps = parse_timeline(payload)
    except MalformedTimeline as e:
        logger.warning(f"[Timeline] Failed to parse choreography: {e}")
        return TimelineLoadResult(
            timeline=list(FALLBACK_TIMELINE),
            notice="Choreography could not be read - holding the idle pose.",
        )

    if not steps:
        logger.warning("[Timeline] Choreography was empty")
        return TimelineLoadResult(
            timeline=list(FALLBACK_TIMELINE),
            notice="Choreography was empty - holding the idle pose.",
        )

    return TimelineLoadResult(timeline=normalize_timeline(steps))


def timeline_to_payload(timeline: Sequence[TimelineStep]) -> list[dict[str, Any]]:
    return [step.to_dict() for step in timeline]
