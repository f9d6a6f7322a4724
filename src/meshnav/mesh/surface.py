"""
Mesh Surface

Read-only triangle mesh used as the navigation surface. Vertices, faces and
edges are addressed by integer handles into numpy arrays. On construction the
surface derives edge lengths, face normals, vertex/face adjacency and a
validity flag per vertex: vertices with a non-manifold neighborhood (an edge
shared by more than two faces, or incident faces that do not form a single
fan) are marked invalid and every adjacency lookup on them raises
`NonManifoldError`.

Point location uses a KDTree over the vertices to collect candidate faces,
followed by a plane projection and a barycentric inside test.
"""

from collections import deque
from typing import Iterator, Optional

import numpy as np
from scipy.spatial import KDTree

from meshnav.utils.constants import EPSILON
from meshnav.utils.exceptions import MeshError, NonManifoldError
from meshnav.utils.log import get_logger

log = get_logger("mesh.surface", "🕸️")

# Barycentric slack for points lying on a shared edge
BARYCENTRIC_TOLERANCE: float = 1e-9


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


def barycentric_coords(p: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray) -> Optional[np.ndarray]:
    """Barycentric weights of `p` in triangle `abc`, None for a degenerate triangle."""
    v0 = b - a
    v1 = c - a
    v2 = p - a
    d00 = np.dot(v0, v0)
    d01 = np.dot(v0, v1)
    d11 = np.dot(v1, v1)
    d20 = np.dot(v2, v0)
    d21 = np.dot(v2, v1)
    denom = d00 * d11 - d01 * d01
    if denom <= EPSILON * max(d00 * d11, EPSILON):
        return None
    v = (d11 * d20 - d01 * d21) / denom
    w = (d00 * d21 - d01 * d20) / denom
    return np.array([1.0 - v - w, v, w], dtype=np.float64)


class MeshSurface:
    """Triangle mesh with the adjacency queries needed for wavefront planning."""

    def __init__(
        self,
        vertices: np.ndarray,
        faces: np.ndarray,
        vertex_costs: Optional[np.ndarray] = None,
    ):
        vertices = np.array(vertices, dtype=np.float64)
        faces = np.array(faces, dtype=np.int64)

        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise MeshError(f"Vertices must have shape (N, 3), got {vertices.shape}")
        if faces.ndim != 2 or faces.shape[1] != 3:
            raise MeshError(f"Faces must have shape (M, 3), got {faces.shape}")
        if len(faces) == 0:
            raise MeshError("Mesh has no faces")
        if np.any(faces >= len(vertices)) or np.any(faces < 0):
            raise MeshError("Mesh has invalid face indices")
        if not np.all(np.isfinite(vertices)):
            raise MeshError("Mesh has non-finite vertex coordinates")
        if vertex_costs is not None:
            vertex_costs = np.array(vertex_costs, dtype=np.float64)
            if vertex_costs.shape != (len(vertices),):
                raise MeshError(f"Vertex costs must have shape ({len(vertices)},), got {vertex_costs.shape}")
            vertex_costs = _read_only(vertex_costs)

        self.vertices = _read_only(vertices)
        self.faces = _read_only(faces)
        self.vertex_costs = vertex_costs

        self._compute_face_normals()
        self._compute_edges()
        self._compute_vertex_faces()
        self._compute_validity()
        self._tree = KDTree(self.vertices)

        log.info(
            f"Surface with {self.num_vertices} vertices, {self.num_faces} faces, "
            f"{len(self.edges)} edges, {int(np.count_nonzero(~self.valid))} invalid vertices"
        )

    # ------------------------------------------------------------------
    # construction helpers

    def _compute_face_normals(self) -> None:
        a, b, c = (self.vertices[self.faces[:, i]] for i in range(3))
        cross = np.cross(b - a, c - a)
        norms = np.linalg.norm(cross, axis=1)
        self.face_areas = _read_only(0.5 * norms)
        self.face_normals = _read_only(cross / np.maximum(norms, EPSILON)[:, None])

    def _compute_edges(self) -> None:
        pairs = np.concatenate([self.faces[:, [0, 1]], self.faces[:, [1, 2]], self.faces[:, [2, 0]]])
        pairs = np.sort(pairs, axis=1)
        edges, counts = np.unique(pairs, axis=0, return_counts=True)
        self.edges = _read_only(edges)
        self.edge_lengths = _read_only(np.linalg.norm(self.vertices[edges[:, 0]] - self.vertices[edges[:, 1]], axis=1))
        self.edge_face_counts = _read_only(counts)
        self._edge_index = {(int(u), int(v)): i for i, (u, v) in enumerate(edges)}
        self.max_edge_length = float(self.edge_lengths.max())

        neighbors: list[list[int]] = [[] for _ in range(self.num_vertices)]
        for u, v in edges:
            neighbors[u].append(int(v))
            neighbors[v].append(int(u))
        self._neighbors = [np.array(n, dtype=np.int64) for n in neighbors]

    def _compute_vertex_faces(self) -> None:
        flat = self.faces.ravel()
        order = np.argsort(flat, kind="stable")
        bounds = np.searchsorted(flat[order], np.arange(self.num_vertices + 1))
        face_ids = order // 3
        self._vertex_faces = [face_ids[bounds[v]:bounds[v + 1]] for v in range(self.num_vertices)]

    def _compute_validity(self) -> None:
        valid = np.ones(self.num_vertices, dtype=bool)

        crowded = self.edges[self.edge_face_counts > 2]
        valid[crowded.ravel()] = False

        for v in range(self.num_vertices):
            if valid[v] and len(self._vertex_faces[v]) > 1 and self._fan_components(v) > 1:
                valid[v] = False

        self.valid = _read_only(valid)

    def _fan_components(self, v: int) -> int:
        """Number of edge-connected groups among the faces around vertex `v`."""
        faces = self._vertex_faces[v]
        parent = {int(f): int(f) for f in faces}

        def find(f: int) -> int:
            while parent[f] != f:
                parent[f] = parent[parent[f]]
                f = parent[f]
            return f

        spokes: dict[int, int] = {}
        for f in faces:
            for u in self.faces[f]:
                if u == v:
                    continue
                u = int(u)
                if u in spokes:
                    parent[find(int(f))] = find(spokes[u])
                else:
                    spokes[u] = int(f)
        return len({find(int(f)) for f in faces})

    # ------------------------------------------------------------------
    # topology

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    def position(self, v: int) -> np.ndarray:
        return self.vertices[v]

    def is_valid(self, v: int) -> bool:
        return bool(self.valid[v])

    def cost(self, v: int) -> float:
        if self.vertex_costs is None:
            return 0.0
        return float(self.vertex_costs[v])

    def vertices_of_face(self, f: int) -> tuple[int, int, int]:
        a, b, c = self.faces[f]
        return int(a), int(b), int(c)

    def face_normal(self, f: int) -> np.ndarray:
        return self.face_normals[f]

    def edge_length(self, u: int, v: int) -> float:
        key = (u, v) if u < v else (v, u)
        try:
            return float(self.edge_lengths[self._edge_index[key]])
        except KeyError:
            raise NonManifoldError(u, f"no edge to {v} from vertex") from None

    def neighbors(self, v: int) -> np.ndarray:
        """Vertices sharing an edge with `v`."""
        if not self.valid[v]:
            raise NonManifoldError(v)
        return self._neighbors[v]

    def faces_of_vertex(self, v: int) -> np.ndarray:
        if not self.valid[v]:
            raise NonManifoldError(v)
        return self._vertex_faces[v]

    def face_neighborhood(self, face: int, depth: int, max_faces: int) -> Iterator[int]:
        """Faces around `face` in breadth first order over shared vertices.

        Yields `face` first, then its vertex ring, up to `depth` rings and at
        most `max_faces` faces. Invalid vertices are not expanded.
        """
        visited = {face}
        frontier = deque([(face, 0)])
        while frontier:
            f, ring = frontier.popleft()
            yield f
            if ring >= depth:
                continue
            for v in self.faces[f]:
                if not self.valid[v]:
                    continue
                for nf in self._vertex_faces[v]:
                    nf = int(nf)
                    if nf in visited or len(visited) >= max_faces:
                        continue
                    visited.add(nf)
                    frontier.append((nf, ring + 1))

    # ------------------------------------------------------------------
    # geometry

    def project_to_face(self, point: np.ndarray, f: int) -> tuple[np.ndarray, float]:
        """Orthogonal projection of `point` onto the plane of face `f` and the signed offset."""
        a = self.vertices[self.faces[f, 0]]
        n = self.face_normals[f]
        offset = float(np.dot(point - a, n))
        return point - offset * n, offset

    def barycentric(self, point: np.ndarray, f: int) -> Optional[np.ndarray]:
        """Barycentric weights of the projection of `point` onto face `f`."""
        projected, _ = self.project_to_face(np.asarray(point, dtype=np.float64), f)
        a, b, c = self.vertices[self.faces[f]]
        return barycentric_coords(projected, a, b, c)

    def contains(self, point: np.ndarray, f: int, tolerance: float) -> bool:
        """Whether `point` projects inside face `f` and lies within `tolerance` of its plane."""
        point = np.asarray(point, dtype=np.float64)
        _, offset = self.project_to_face(point, f)
        if abs(offset) > tolerance:
            return False
        weights = self.barycentric(point, f)
        return weights is not None and bool(np.all(weights >= -BARYCENTRIC_TOLERANCE))

    def containing_face(self, point: np.ndarray, tolerance: float) -> Optional[int]:
        """Face containing `point` within `tolerance`, closest plane first."""
        point = np.asarray(point, dtype=np.float64)
        if point.shape != (3,) or not np.all(np.isfinite(point)):
            return None
        nearby = self._tree.query_ball_point(point, r=tolerance + self.max_edge_length)
        if not nearby:
            return None
        candidates = np.unique(np.concatenate([self._vertex_faces[v] for v in nearby]))
        if len(candidates) == 0:
            return None

        tri = self.vertices[self.faces[candidates]]
        normals = self.face_normals[candidates]
        offsets = np.einsum("ij,ij->i", point - tri[:, 0], normals)
        projected = point - offsets[:, None] * normals

        v0 = tri[:, 1] - tri[:, 0]
        v1 = tri[:, 2] - tri[:, 0]
        v2 = projected - tri[:, 0]
        d00 = np.einsum("ij,ij->i", v0, v0)
        d01 = np.einsum("ij,ij->i", v0, v1)
        d11 = np.einsum("ij,ij->i", v1, v1)
        d20 = np.einsum("ij,ij->i", v2, v0)
        d21 = np.einsum("ij,ij->i", v2, v1)
        denom = d00 * d11 - d01 * d01
        proper = denom > EPSILON * np.maximum(d00 * d11, EPSILON)
        safe = np.where(proper, denom, 1.0)
        w1 = (d11 * d20 - d01 * d21) / safe
        w2 = (d00 * d21 - d01 * d20) / safe
        w0 = 1.0 - w1 - w2

        inside = (
            proper
            & (w0 >= -BARYCENTRIC_TOLERANCE)
            & (w1 >= -BARYCENTRIC_TOLERANCE)
            & (w2 >= -BARYCENTRIC_TOLERANCE)
            & (np.abs(offsets) <= tolerance)
        )
        if not np.any(inside):
            return None
        hits = candidates[inside]
        return int(hits[np.argmin(np.abs(offsets[inside]))])

    def find_face_near(
        self,
        point: np.ndarray,
        face: int,
        tolerance: float,
        depth: int,
        max_faces: int,
    ) -> Optional[int]:
        """Bounded search for the face containing `point`, starting at `face`."""
        point = np.asarray(point, dtype=np.float64)
        best: Optional[int] = None
        best_offset = np.inf
        for f in self.face_neighborhood(face, depth, max_faces):
            if not self.contains(point, f, tolerance):
                continue
            _, offset = self.project_to_face(point, f)
            if abs(offset) < best_offset:
                best, best_offset = f, abs(offset)
        return best
