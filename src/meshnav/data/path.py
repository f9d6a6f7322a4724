from typing import Optional

from meshnav.data.base import BaseCfg
from meshnav.data.pose import Pose


class PathRecord(BaseCfg):
    """Planned path as stored on disk."""

    outcome: str
    """Outcome of the planning call."""
    cost: float = 0.0
    """Length of the path in meters."""
    poses: list[Pose] = []
    """Poses from start to goal."""
    faces: list[int] = []
    """Containing face of each pose."""
    mesh_name: Optional[str] = None
    """Name of the mesh the path was planned on."""
