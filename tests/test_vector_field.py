import math

import numpy as np
import pytest

from meshnav.data.planner import PlannerCfg
from meshnav.plan.state import WavefrontState
from meshnav.plan.update import wavefront_update
from meshnav.plan.vector_field import build_vector_field, rotate_about_axis
from meshnav.plan.wavefront import propagate


def test_rotate_about_axis():
    rotated = rotate_about_axis(np.array([1.0, 0.0, 0.0]), np.array([0.0, 0.0, 1.0]), math.pi / 2)
    assert np.allclose(rotated, [0.0, 1.0, 0.0])


def test_direction_points_at_virtual_source(single_face):
    # planar point source below the edge v0-v1
    source = np.array([0.4, -2.0, 0.0])
    state = WavefrontState.empty(3)
    for v in (0, 1):
        state.distances[v] = np.linalg.norm(single_face.position(v) - source)
        state.fixed[v] = True
    assert wavefront_update(single_face, state, 0, 1, 2, 0)

    field = build_vector_field(single_face, state)
    expected = source - single_face.position(2)
    assert list(field) == [2]
    assert np.allclose(field[2], expected / np.linalg.norm(expected))


class TestFieldOnGrid:
    start = np.array([0.23, 0.17, 0.0])

    @pytest.fixture
    def propagated(self, flat_grid):
        start_face = flat_grid.containing_face(self.start, 1e-6)
        goal_face = flat_grid.containing_face(np.array([1.7, 1.2, 0.0]), 1e-6)
        state = propagate(flat_grid, self.start, start_face, goal_face, PlannerCfg()).state
        return flat_grid, state, build_vector_field(flat_grid, state)

    def test_unit_length(self, propagated):
        _, _, field = propagated
        assert len(field) > 0
        norms = np.linalg.norm(np.stack(list(field.values())), axis=1)
        assert np.allclose(norms, 1.0)

    def test_seeds_are_excluded(self, propagated):
        _, state, field = propagated
        for v in state.seeds:
            assert v not in field
        assert set(field) <= set(state.cutting_faces)

    def test_directions_descend(self, propagated):
        surface, _, field = propagated
        for v, direction in field.items():
            toward_start = self.start - surface.position(v)
            assert np.dot(direction, toward_start) > 0.0

    def test_read_only(self, propagated):
        _, _, field = propagated
        v = next(iter(field))
        with pytest.raises(TypeError):
            field[v] = np.zeros(3)
        with pytest.raises(ValueError):
            field[v][0] = 1.0

    def test_as_array(self, propagated):
        surface, state, field = propagated
        dense = field.as_array()
        assert dense.shape == (surface.num_vertices, 3)
        for v in state.seeds:
            assert np.all(dense[v] == 0.0)

    def test_sample_blends_in_face_plane(self, propagated):
        surface, _, field = propagated
        point = np.array([1.23, 0.77, 0.0])
        face = surface.containing_face(point, 1e-6)
        direction = field.sample(point, face)
        assert direction is not None
        assert np.linalg.norm(direction) == pytest.approx(1.0)
        assert direction[2] == pytest.approx(0.0, abs=1e-12)
        assert np.dot(direction, self.start - point) > 0.0

    def test_sample_in_start_face_needs_seed_directions(self, propagated):
        surface, state, field = propagated
        face = surface.containing_face(self.start, 1e-6)
        point = surface.vertices[list(surface.vertices_of_face(face))].mean(axis=0)
        assert field.sample(point, face) is None
        extra = {v: np.array([1.0, 0.0, 0.0]) for v in state.seeds}
        assert np.allclose(field.sample(point, face, extra), [1.0, 0.0, 0.0])
