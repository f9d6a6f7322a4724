"""
Surface loading

Builds `MeshSurface` objects from mesh files (through trimesh) or from a
regular height-field grid, which is handy for flat and sloped test terrain.
"""

import os
from typing import Optional

import numpy as np
import trimesh

from meshnav.data.mesh import MeshCfg
from meshnav.mesh.surface import MeshSurface
from meshnav.utils.exceptions import MeshError
from meshnav.utils.log import get_logger

log = get_logger("mesh.io", "📦")


def load_surface(mesh_path: str | os.PathLike, vertex_costs: Optional[np.ndarray] = None) -> MeshSurface:
    """Load a triangle mesh file and wrap it as a navigation surface."""
    mesh_path = os.path.expanduser(mesh_path)
    log.info(f"Loading mesh from {mesh_path}")
    try:
        mesh = trimesh.load(mesh_path, process=False, force="mesh")
    except Exception as e:
        raise MeshError(f"Failed to load mesh from {mesh_path}: {e}") from e
    if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
        raise MeshError(f"{mesh_path} does not contain a triangle mesh")
    return surface_from_trimesh(mesh, vertex_costs)


def surface_from_trimesh(mesh: trimesh.Trimesh, vertex_costs: Optional[np.ndarray] = None) -> MeshSurface:
    return MeshSurface(
        np.asarray(mesh.vertices, dtype=np.float64),
        np.asarray(mesh.faces, dtype=np.int64),
        vertex_costs=vertex_costs,
    )


def grid_arrays(size_x: float, size_y: float, resolution: float, slope: float = 0.0) -> tuple[np.ndarray, np.ndarray]:
    """Vertices and faces of a regular grid starting at the origin.

    Every cell is split along the same diagonal, faces are counter clockwise
    seen from +z. Height is `slope * x`.
    """
    nx = int(round(size_x / resolution)) + 1
    ny = int(round(size_y / resolution)) + 1
    xs = np.linspace(0.0, size_x, nx)
    ys = np.linspace(0.0, size_y, ny)
    gx, gy = np.meshgrid(xs, ys, indexing="ij")
    vertices = np.column_stack([gx.ravel(), gy.ravel(), slope * gx.ravel()])

    idx = np.arange(nx * ny).reshape(nx, ny)
    v00 = idx[:-1, :-1].ravel()
    v10 = idx[1:, :-1].ravel()
    v01 = idx[:-1, 1:].ravel()
    v11 = idx[1:, 1:].ravel()
    faces = np.concatenate([
        np.column_stack([v00, v10, v11]),
        np.column_stack([v00, v11, v01]),
    ])
    return vertices, faces


def grid_surface(size_x: float, size_y: float, resolution: float, slope: float = 0.0) -> MeshSurface:
    vertices, faces = grid_arrays(size_x, size_y, resolution, slope)
    log.info(f"Generated {size_x}x{size_y} m grid with resolution {resolution} m and slope {slope}")
    return MeshSurface(vertices, faces)


def surface_from_config(cfg: MeshCfg) -> MeshSurface:
    if cfg.source == "file":
        return load_surface(cfg.mesh_path)
    return grid_surface(cfg.size_x, cfg.size_y, cfg.resolution, cfg.slope)
