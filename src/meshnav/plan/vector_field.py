"""
Vector Field

Turns the predecessor map of a finished propagation into unit descent
directions. The update rule works in an unfolded 2D frame, so the direction of
a vertex is the edge toward its predecessor rotated about the normal of the
cutting face by the stored angle offset.
"""

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

import numpy as np

from meshnav.mesh.surface import MeshSurface
from meshnav.plan.state import WavefrontState
from meshnav.utils.constants import EPSILON
from meshnav.utils.log import get_logger

log = get_logger("plan.vector_field", "🧭")


def rotate_about_axis(vector: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    """Rodrigues rotation of `vector` about the unit `axis`."""
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)
    return vector * cos_a + np.cross(axis, vector) * sin_a + axis * np.dot(axis, vector) * (1.0 - cos_a)


class VectorField(Mapping[int, np.ndarray]):
    """Read-only sparse mapping from vertex to unit direction."""

    def __init__(self, surface: MeshSurface, directions: dict[int, np.ndarray]):
        self._surface = surface
        for vec in directions.values():
            vec.setflags(write=False)
        self._directions = MappingProxyType(directions)

    def __getitem__(self, v: int) -> np.ndarray:
        return self._directions[v]

    def __iter__(self) -> Iterator[int]:
        return iter(self._directions)

    def __len__(self) -> int:
        return len(self._directions)

    def as_array(self) -> np.ndarray:
        """Dense (N, 3) copy with zero rows for vertices outside the field."""
        dense = np.zeros((self._surface.num_vertices, 3), dtype=np.float64)
        for v, vec in self._directions.items():
            dense[v] = vec
        return dense

    def sample(
        self,
        point: np.ndarray,
        face: int,
        extra: Optional[Mapping[int, np.ndarray]] = None,
    ) -> Optional[np.ndarray]:
        """Unit direction at `point` inside `face`.

        The directions of the three face vertices are blended with the
        barycentric weights of the point and projected into the face plane.
        `extra` supplies directions for vertices outside the field. Returns None
        when no vertex of the face has a direction or the blend cancels out.
        """
        weights = self._surface.barycentric(point, face)
        if weights is None:
            return None
        weights = np.clip(weights, 0.0, None)
        normal = self._surface.face_normal(face)

        blend = np.zeros(3, dtype=np.float64)
        best, best_weight = None, -1.0
        for v, w in zip(self._surface.vertices_of_face(face), weights):
            vec = self._directions.get(v)
            if vec is None and extra is not None:
                vec = extra.get(v)
            if vec is None:
                continue
            blend += w * vec
            if w > best_weight:
                best, best_weight = vec, w

        if best is None:
            return None
        for candidate in (blend, best):
            tangent = candidate - np.dot(candidate, normal) * normal
            norm = np.linalg.norm(tangent)
            if norm > EPSILON:
                return tangent / norm
        return None


def build_vector_field(surface: MeshSurface, state: WavefrontState) -> VectorField:
    """Unit direction toward the predecessor for every resolved, non-seed vertex."""
    directions: dict[int, np.ndarray] = {}
    for v3, face in state.cutting_faces.items():
        v1 = int(state.predecessors[v3])
        if v1 == v3:
            continue
        offset = surface.position(v1) - surface.position(v3)
        rotated = rotate_about_axis(offset, surface.face_normal(face), float(state.direction[v3]))
        norm = np.linalg.norm(rotated)
        if not np.isfinite(norm) or norm < EPSILON:
            log.debug(f"Skipping degenerate direction at vertex {v3}")
            continue
        directions[v3] = rotated / norm
    log.info(f"Vector field with {len(directions)} directions")
    return VectorField(surface, directions)
