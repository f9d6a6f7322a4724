from typing import Any

import numpy as np
from pydantic import field_validator
from pydantic_numpy.typing import NpNDArray
from scipy.spatial.transform import Rotation

from meshnav.data.base import BaseCfg


def _as_float_array(v: Any) -> np.ndarray:
    # Handle pydantic-numpy serialized format
    if isinstance(v, dict) and "data" in v:
        return np.array(v["data"], dtype=np.float64)
    return np.asarray(v, dtype=np.float64)


class Pos(BaseCfg):
    """Position in meters (xyz)."""
    model_config = {"arbitrary_types_allowed": True}
    xyz: NpNDArray

    @field_validator("xyz", mode="before")
    def convert_to_array(cls, v: Any) -> np.ndarray:
        return _as_float_array(v)

    @field_validator("xyz")
    def check_shape(cls, v):
        if v.shape != (3,):
            raise ValueError("xyz must have shape (3,)")
        if not np.all(np.isfinite(v)):
            raise ValueError("xyz must be finite")
        return v

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        data = super().model_dump(**kwargs)
        data["xyz"] = self.xyz.tolist()
        return data


class Rot(BaseCfg):
    """Orientation quaternion (wxyz)."""
    model_config = {"arbitrary_types_allowed": True}
    wxyz: NpNDArray

    @field_validator("wxyz", mode="before")
    def convert_to_array(cls, v: Any) -> np.ndarray:
        return _as_float_array(v)

    @field_validator("wxyz")
    def check_shape(cls, v):
        if v.shape != (4,):
            raise ValueError("wxyz must have shape (4,)")
        return v

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        data = super().model_dump(**kwargs)
        data["wxyz"] = self.wxyz.tolist()
        return data

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "Rot":
        x, y, z, w = Rotation.from_matrix(matrix).as_quat()
        return cls(wxyz=[w, x, y, z])

    def as_matrix(self) -> np.ndarray:
        w, x, y, z = self.wxyz
        return Rotation.from_quat([x, y, z, w]).as_matrix()


class Pose(BaseCfg):
    """6D pose."""
    pos: Pos
    """Position in meters (xyz)."""
    rot: Rot
    """Orientation quaternion (wxyz)."""

    @classmethod
    def from_direction(cls, position: np.ndarray, direction: np.ndarray, normal: np.ndarray) -> "Pose":
        """Pose at `position` with x along `direction` and z along the surface `normal`.

        The direction is projected into the tangent plane first. When it is
        parallel to the normal an arbitrary tangent is used instead.
        """
        z = np.asarray(normal, dtype=np.float64)
        z = z / np.linalg.norm(z)
        x = np.asarray(direction, dtype=np.float64)
        x = x - np.dot(x, z) * z
        norm = np.linalg.norm(x)
        if norm < 1e-12:
            helper = np.array([1.0, 0.0, 0.0]) if abs(z[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
            x = helper - np.dot(helper, z) * z
            norm = np.linalg.norm(x)
        x = x / norm
        y = np.cross(z, x)
        matrix = np.column_stack([x, y, z])
        return cls(pos=Pos(xyz=position), rot=Rot.from_matrix(matrix))
