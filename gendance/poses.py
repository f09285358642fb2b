"""
Pose library - joint rotation presets keyed by move name.

This is reference data, not behaviour. The figure mixer receives a
PoseLibrary and looks moves up by name; unknown names render as IDLE.
Rotations are Euler angles in radians: [x, y, z] per joint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping

import numpy as np

JOINTS = ("hips", "spine", "head", "armL", "armR", "legL", "legR")


@dataclass(frozen=True)
class JointRotation:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])


@dataclass(frozen=True)
class Pose:
    """Full-body target for one move."""

    name: str
    hips: JointRotation = JointRotation()
    spine: JointRotation = JointRotation()
    head: JointRotation = JointRotation()
    armL: JointRotation = JointRotation()
    armR: JointRotation = JointRotation()
    legL: JointRotation = JointRotation()
    legR: JointRotation = JointRotation()

    def joint(self, joint_name: str) -> JointRotation:
        return getattr(self, joint_name)

    @classmethod
    def from_coords(cls, name: str, coords: Mapping[str, list[float]]) -> Pose:
        """Build a pose from {joint: [x, y, z]}; missing joints stay neutral."""
        joints = {j: JointRotation(*coords[j]) for j in JOINTS if j in coords}
        return cls(name=name, **joints)


# Arms hang at rest with z = +/-1.3 (down along the body)
POSE_COORDS: dict[str, dict[str, list[float]]] = {
    "IDLE": {
        "armL": [0, 0, -1.3], "armR": [0, 0, 1.3],
    },
    "DAB": {
        "spine": [0.2, 0, 0], "head": [0.5, 0, 0.3],
        "armL": [0, 0, 0.6], "armR": [0.6, 0.4, 0.4],
    },
    "KICK_LEFT": {
        "hips": [0, 0, 0.1], "armL": [0, 0, -0.4], "armR": [0, 0, 0.4],
        "legL": [-1.2, 0, 0],
    },
    "KICK_RIGHT": {
        "hips": [0, 0, -0.1], "armL": [0, 0, -0.4], "armR": [0, 0, 0.4],
        "legR": [-1.2, 0, 0],
    },
    "DISCO_POINT": {
        "hips": [0, 0.2, 0], "head": [0, 0, 0.2],
        "armL": [0, 0, -1.3], "armR": [0, 0, -0.9],
    },
    "PUMP_IT": {
        "spine": [0.1, 0, 0], "armL": [0, 0, 1.4], "armR": [0, 0, -1.4],
    },
    "VOGUE": {
        "hips": [0, 0.3, 0], "head": [0, -0.4, 0],
        "armL": [0, 0, 0.8], "armR": [-1.2, 0, 1.0],
    },
    "THRILLER": {
        "spine": [0.3, 0, 0.2], "head": [0.2, 0, 0.3],
        "armL": [-1.3, 0, -0.3], "armR": [-1.3, 0, 0.3],
    },
    "RUNNING_MAN": {
        "armL": [1.0, 0, -1.1], "armR": [-1.0, 0, 1.1],
        "legL": [-0.8, 0, 0], "legR": [0.5, 0, 0],
    },
    "LUNGE_LEFT": {
        "hips": [0, 0, 0.3], "armL": [0, 0, -0.3], "armR": [0, 0, 1.0],
        "legL": [0, 0, -0.6],
    },
    "LUNGE_RIGHT": {
        "hips": [0, 0, -0.3], "armL": [0, 0, -1.0], "armR": [0, 0, 0.3],
        "legR": [0, 0, 0.6],
    },
    "ARMS_UP": {
        "head": [-0.2, 0, 0], "armL": [0, 0, 1.5], "armR": [0, 0, -1.5],
    },
    "HIP_SWAY_LEFT": {
        "hips": [0, 0, 0.25], "spine": [0, 0, -0.2],
        "armL": [0, 0, -1.1], "armR": [0, 0, 1.1],
    },
    "HIP_SWAY_RIGHT": {
        "hips": [0, 0, -0.25], "spine": [0, 0, 0.2],
        "armL": [0, 0, -1.1], "armR": [0, 0, 1.1],
    },
    "CLAP": {
        "armL": [-1.4, 0.7, 0], "armR": [-1.4, -0.7, 0],
    },
}


class PoseLibrary:
    """Read-only pose lookup with a guaranteed IDLE entry."""

    FALLBACK = "IDLE"

    def __init__(self, poses: Mapping[str, Pose]):
        if self.FALLBACK not in poses:
            raise ValueError(f"Pose library must define {self.FALLBACK}")
        self._poses = dict(poses)

    @classmethod
    def default(cls) -> PoseLibrary:
        return cls({name: Pose.from_coords(name, coords) for name, coords in POSE_COORDS.items()})

    def __contains__(self, pose_id: object) -> bool:
        return pose_id in self._poses

    def __iter__(self) -> Iterator[str]:
        return iter(self._poses)

    def __len__(self) -> int:
        return len(self._poses)

    def names(self) -> list[str]:
        return list(self._poses)

    def lookup(self, pose_id: str) -> Pose | None:
        """Exact lookup, None for unknown ids."""
        return self._poses.get(pose_id)

    def get(self, pose_id: str) -> Pose:
        """Lookup with IDLE fallback."""
        return self._poses.get(pose_id) or self._poses[self.FALLBACK]
