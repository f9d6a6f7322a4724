import numpy as np
import pytest
from scipy.spatial import Delaunay

from meshnav.mesh.io import grid_surface
from meshnav.mesh.surface import MeshSurface


@pytest.fixture
def small_grid() -> MeshSurface:
    """1 x 1 m flat grid with 25 cm cells (5 x 5 vertices)."""
    return grid_surface(1.0, 1.0, 0.25)


@pytest.fixture
def flat_grid() -> MeshSurface:
    """2 x 2 m flat grid with 10 cm cells."""
    return grid_surface(2.0, 2.0, 0.1)


@pytest.fixture
def single_face() -> MeshSurface:
    vertices = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.5, 0.8, 0.0]])
    return MeshSurface(vertices, [[0, 1, 2]])


@pytest.fixture(scope="module")
def delaunay_surface() -> MeshSurface:
    """Irregular flat mesh of the unit square with points on its border."""
    rng = np.random.default_rng(7)
    interior = rng.uniform(0.02, 0.98, size=(400, 2))
    t = rng.uniform(0.01, 0.99, size=(4, 30))
    border = np.concatenate([
        np.column_stack([t[0], np.zeros(30)]),
        np.column_stack([t[1], np.ones(30)]),
        np.column_stack([np.zeros(30), t[2]]),
        np.column_stack([np.ones(30), t[3]]),
        [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]],
    ])
    points = np.vstack([interior, border])
    faces = Delaunay(points).simplices.copy()

    a, b, c = (points[faces[:, i]] for i in range(3))
    ab, ac = b - a, c - a
    clockwise = ab[:, 0] * ac[:, 1] - ab[:, 1] * ac[:, 0] < 0.0
    faces[clockwise] = faces[clockwise][:, [0, 2, 1]]
    return MeshSurface(np.column_stack([points, np.zeros(len(points))]), faces)
