"""
FigureMixer - turns (current move, next move, blend, pulse) into joint targets.

This is the renderer side of the timeline. Playback decides which moves
are involved and how far along the transition is; the mixer decides
what the figure actually looks like:
1. Resolve move names through the pose library (unknown -> IDLE)
2. Ease the blend with smoothstep and LERP every joint
3. Pulse the figure's scale and glow on the beat
4. Hand the frame to the output callback
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from ..poses import JOINTS, PoseLibrary

logger = logging.getLogger(__name__)


@dataclass
class FigureFrame:
    """One rendered frame of the figure."""

    joints: dict[str, np.ndarray] = field(default_factory=dict)  # joint -> [x, y, z] radians
    scale: float = 1.0
    emissive_intensity: float = 0.4
    current_pose: str = "IDLE"
    next_pose: str = "IDLE"
    blend: float = 0.0
    pulse: float = 0.0

    def copy(self) -> FigureFrame:
        return FigureFrame(
            joints={k: v.copy() for k, v in self.joints.items()},
            scale=self.scale,
            emissive_intensity=self.emissive_intensity,
            current_pose=self.current_pose,
            next_pose=self.next_pose,
            blend=self.blend,
            pulse=self.pulse,
        )

    def to_dict(self) -> dict:
        return {
            "joints": {k: [float(x) for x in v] for k, v in self.joints.items()},
            "scale": float(self.scale),
            "emissive_intensity": float(self.emissive_intensity),
            "current_pose": self.current_pose,
            "next_pose": self.next_pose,
            "blend": float(self.blend),
            "pulse": float(self.pulse),
        }


@dataclass
class FigureConfig:
    """Tunable rendering parameters.

    These can be adjusted via the settings API in real time.
    """

    # Beat emphasis
    base_scale: float = 1.0
    pulse_scale: float = 0.05  # Extra scale at the top of each beat
    base_emissive: float = 0.4
    pulse_emissive: float = 0.8  # Extra glow at the top of each beat

    # Global intensity scalar (0.0 to 1.0) - dampens beat emphasis
    intensity: float = 1.0


def smoothstep(t: float) -> float:
    """Hermite ease on [0, 1]."""
    t = min(1.0, max(0.0, t))
    return t * t * (3.0 - 2.0 * t)


class FigureMixer:
    """Renderer for the dancing figure.

    The player calls render() once per tick. The mixer keeps the last
    frame for status display and forwards every frame to `output`.
    """

    def __init__(
        self,
        config: FigureConfig,
        library: Optional[PoseLibrary] = None,
        output: Optional[Callable[[FigureFrame], None]] = None,
    ):
        self.config = config
        self.library = library or PoseLibrary.default()
        self.output = output

        self._current = self._idle_frame()
        self._warned: set[str] = set()

    def render(
        self,
        current_pose: str,
        next_pose: str,
        blend: float,
        pulse: float = 0.0,
    ) -> FigureFrame:
        """Blend two moves and apply beat emphasis."""
        pose_a = self._resolve(current_pose) or self.library.get(PoseLibrary.FALLBACK)
        pose_b = self._resolve(next_pose) or pose_a
        t = smoothstep(blend)

        joints = {
            name: pose_a.joint(name).as_array() * (1.0 - t) + pose_b.joint(name).as_array() * t
            for name in JOINTS
        }

        emphasis = pulse * self.config.intensity
        frame = FigureFrame(
            joints=joints,
            scale=self.config.base_scale + emphasis * self.config.pulse_scale,
            emissive_intensity=self.config.base_emissive + emphasis * self.config.pulse_emissive,
            current_pose=current_pose,
            next_pose=next_pose,
            blend=blend,
            pulse=pulse,
        )

        self._current = frame
        self._send(frame)
        return frame.copy()

    def _resolve(self, pose_id: str):
        pose = self.library.lookup(pose_id)
        if pose is None and pose_id not in self._warned:
            # Once per id, the generator tends to repeat itself
            logger.warning(f"[FigureMixer] Unknown pose '{pose_id}' - rendering IDLE")
            self._warned.add(pose_id)
        return pose

    def _idle_frame(self) -> FigureFrame:
        idle = self.library.get(PoseLibrary.FALLBACK)
        return FigureFrame(
            joints={name: idle.joint(name).as_array() for name in JOINTS},
            scale=self.config.base_scale,
            emissive_intensity=self.config.base_emissive,
        )

    def _send(self, frame: FigureFrame) -> None:
        if self.output is not None:
            self.output(frame)

    def reset(self) -> None:
        """Return to the idle pose."""
        self._current = self._idle_frame()
        self._send(self._current)

    def update_config(self, **kwargs) -> None:
        """Update config parameters (for live UI tuning)."""
        for key, value in kwargs.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)

    def get_current_frame(self) -> FigureFrame:
        """Get the last rendered frame (for UI display)."""
        return self._current.copy()
