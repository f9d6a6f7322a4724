from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, NamedTuple, Sequence

import numpy as np


class FixedVertex(NamedTuple):
    vertex: int
    distance: float
    """Geodesic distance of the vertex, as stored in `distances`."""
    key: float
    """Queue key it was popped with, never below the key popped before it."""


@dataclass
class WavefrontState:
    """Per-call vertex maps written by the wavefront engine.

    `predecessors[v] == v` marks an unresolved vertex. `cutting_faces` holds the
    face whose unfolding produced the current distance of a vertex and
    `direction` the signed angle between the predecessor edge and the true
    descent direction, measured about that face's normal.
    """

    distances: np.ndarray
    predecessors: np.ndarray
    fixed: np.ndarray
    direction: np.ndarray
    cutting_faces: Mapping[int, int] = field(default_factory=dict)
    seeds: tuple[int, ...] = ()
    fix_order: Sequence[FixedVertex] = field(default_factory=list)

    @classmethod
    def empty(cls, num_vertices: int) -> "WavefrontState":
        return cls(
            distances=np.full(num_vertices, np.inf, dtype=np.float64),
            predecessors=np.arange(num_vertices, dtype=np.int64),
            fixed=np.zeros(num_vertices, dtype=bool),
            direction=np.zeros(num_vertices, dtype=np.float64),
        )

    def is_resolved(self, v: int) -> bool:
        """Whether `v` is a seed or received a distance through a predecessor."""
        return v in self.seeds or int(self.predecessors[v]) != v

    def freeze(self) -> None:
        """Make every map read-only once the planning call hands the state out."""
        for array in (self.distances, self.predecessors, self.fixed, self.direction):
            array.setflags(write=False)
        if not isinstance(self.cutting_faces, MappingProxyType):
            self.cutting_faces = MappingProxyType(dict(self.cutting_faces))
        self.fix_order = tuple(self.fix_order)
