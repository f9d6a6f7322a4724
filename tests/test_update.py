import math

import numpy as np
import pytest

from meshnav.mesh.surface import MeshSurface
from meshnav.plan.state import WavefrontState
from meshnav.plan.update import unfold_triangle, wavefront_update, wrap_angle


def fixed_state(num_vertices: int, distances: dict[int, float]) -> WavefrontState:
    state = WavefrontState.empty(num_vertices)
    for v, d in distances.items():
        state.distances[v] = d
        state.fixed[v] = True
    return state


class TestUnfoldTriangle:
    def test_right_triangle_gives_sqrt2(self):
        # P0=(0,0), P1=(1,0), P2=(0,1) with the front starting at P1
        result = unfold_triangle(u1=1.0, u2=0.0, a=math.sqrt(2.0), b=1.0, c=1.0)
        assert result.distance == pytest.approx(math.sqrt(2.0))
        assert result.direct
        assert not result.via_first

    def test_planar_source_is_recovered(self):
        # v1=(0,0), v2=(1,0), v3=(0.5,0.8) and a point source at (0.4,-2)
        source = np.array([0.4, -2.0])
        v1, v2, v3 = np.array([0.0, 0.0]), np.array([1.0, 0.0]), np.array([0.5, 0.8])
        result = unfold_triangle(
            u1=np.linalg.norm(v1 - source),
            u2=np.linalg.norm(v2 - source),
            a=np.linalg.norm(v3 - v2),
            b=np.linalg.norm(v3 - v1),
            c=1.0,
        )
        assert result.direct
        assert result.distance == pytest.approx(np.linalg.norm(v3 - source))

    def test_obtuse_face_falls_back_to_edge(self):
        # v1=(0,0), v2=(1,0), v3=(2,0.5) and a point source at (3,-1)
        a = math.sqrt(1.25)
        result = unfold_triangle(u1=math.sqrt(10.0), u2=math.sqrt(5.0), a=a, b=math.sqrt(4.25), c=1.0)
        assert not result.direct
        assert not result.via_first
        assert result.angle == 0.0
        assert result.distance == pytest.approx(math.sqrt(5.0) + a)

    def test_degenerate_edge_uses_cheaper_edge_sum(self):
        result = unfold_triangle(u1=1.0, u2=2.0, a=1.0, b=0.0, c=1.0)
        assert result == (1.0, True, 0.0, False)

    def test_mirrored_source(self):
        # source is the mirror image of v3 across the edge v1-v2
        result = unfold_triangle(u1=1.0, u2=1.0, a=1.0, b=1.0, c=math.sqrt(2.0))
        assert result.direct
        assert result.distance == pytest.approx(math.sqrt(2.0))


def test_wrap_angle_range():
    assert wrap_angle(math.pi) == pytest.approx(math.pi)
    assert wrap_angle(-math.pi) == pytest.approx(math.pi)
    assert wrap_angle(1.5 * math.pi) == pytest.approx(-0.5 * math.pi)
    assert wrap_angle(-2.5 * math.pi) == pytest.approx(-0.5 * math.pi)
    for angle in np.linspace(-10.0, 10.0, 41):
        wrapped = wrap_angle(float(angle))
        assert -math.pi < wrapped <= math.pi


class TestWavefrontUpdate:
    def test_obtuse_update_records_second_vertex(self):
        vertices = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.5, 0.0]])
        surface = MeshSurface(vertices, [[0, 1, 2]])
        state = fixed_state(3, {0: math.sqrt(10.0), 1: math.sqrt(5.0)})

        assert wavefront_update(surface, state, 0, 1, 2, 0)
        assert state.distances[2] == pytest.approx(math.sqrt(5.0) + math.sqrt(1.25))
        assert state.predecessors[2] == 1
        assert state.direction[2] == 0.0
        assert state.cutting_faces == {2: 0}

    def test_right_triangle_update(self):
        vertices = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        surface = MeshSurface(vertices, [[0, 1, 2]])
        state = fixed_state(3, {0: 1.0, 1: 0.0})

        assert wavefront_update(surface, state, 0, 1, 2, 0)
        assert state.distances[2] == pytest.approx(math.sqrt(2.0))
        assert -math.pi < state.direction[2] <= math.pi

    def test_requires_strict_improvement(self, single_face):
        state = fixed_state(3, {0: 1.0, 1: 1.0})
        assert wavefront_update(single_face, state, 0, 1, 2, 0)
        first = float(state.distances[2])
        assert not wavefront_update(single_face, state, 0, 1, 2, 0)
        assert state.distances[2] == first

    def test_distance_below_far_fixed_vertex_is_kept(self):
        # near point source at (0, -0.1): v3 is much closer to it than v2
        vertices = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.1, 0.3, 0.0]])
        surface = MeshSurface(vertices, [[0, 1, 2]])
        source = np.array([0.0, -0.1, 0.0])
        state = fixed_state(3, {v: float(np.linalg.norm(vertices[v] - source)) for v in (0, 1)})

        assert wavefront_update(surface, state, 0, 1, 2, 0)
        assert state.distances[2] == pytest.approx(np.linalg.norm(vertices[2] - source))
        assert state.distances[2] < state.distances[1]
        assert state.predecessors[2] == 0

    def test_non_finite_input_is_rejected(self, single_face):
        state = fixed_state(3, {0: np.inf, 1: 1.0})
        assert not wavefront_update(single_face, state, 0, 1, 2, 0)
        assert np.isinf(state.distances[2])
        assert state.predecessors[2] == 2
        assert state.cutting_faces == {}
