from pathlib import Path
from typing import Literal, Optional

from pydantic import field_validator, model_validator

from meshnav.data.base import BaseCfg


class MeshCfg(BaseCfg):
    """Where the navigation surface comes from."""

    name: str
    """Name of the mesh."""
    source: Literal["file", "grid"] = "grid"
    """Load a mesh file or generate a regular grid."""

    mesh_path: Optional[Path] = None
    """Mesh file readable by trimesh (obj, ply, stl, off)."""

    size_x: float = 2.0
    """Grid extent along x in meters."""
    size_y: float = 2.0
    """Grid extent along y in meters."""
    resolution: float = 0.1
    """Grid spacing in meters."""
    slope: float = 0.0
    """Grid height gain along x (rise over run)."""

    @field_validator("mesh_path", mode="before")
    def expand_user_path(cls, v):
        if v is None:
            return None
        return Path(v).expanduser()

    @field_validator("size_x", "size_y", "resolution")
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def check_source(self) -> "MeshCfg":
        if self.source == "file" and self.mesh_path is None:
            raise ValueError("mesh_path is required when source is 'file'")
        if self.source == "grid" and self.resolution > min(self.size_x, self.size_y):
            raise ValueError("resolution must not exceed the grid size")
        return self
