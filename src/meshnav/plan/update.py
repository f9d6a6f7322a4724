"""
Triangle Distance Update

Given a face with two fixed vertices v1, v2 and one free vertex v3, the face is
unfolded into a 2D frame with v1 at the origin and v2 on the positive x axis.
The fixed distances u1 and u2 are read as radii of circular wavefronts around
v1 and v2; their intersection on the far side of the edge v1-v2 is the virtual
point source of the front. The candidate distance of v3 is its distance to
that virtual source.

The unfolding is admissible only when the straight line from v3 to the virtual
source passes through the edge v1-v2, i.e. when the angles theta1 (v1 to source)
and theta2 (v2 to source) measured at v3 add up to no more than the face angle
theta0 at v3. Otherwise the front reaches v3 around a corner and the distance
falls back to the cheaper path along an edge: u1 + |v1 v3| or u2 + |v2 v3|.
"""

import math
from typing import NamedTuple

from meshnav.mesh.surface import MeshSurface
from meshnav.plan.state import WavefrontState
from meshnav.utils.constants import EPSILON
from meshnav.utils.log import get_logger

log = get_logger("plan.update", "📐")


class Unfolding(NamedTuple):
    distance: float
    """Candidate distance for the free vertex."""
    via_first: bool
    """True when v1 is the predecessor, False for v2."""
    angle: float
    """Signed offset from the predecessor edge to the descent direction."""
    direct: bool
    """True for an admissible unfolding, False for the edge fallback."""


def _safe_acos(cos_value: float) -> float:
    return math.acos(min(1.0, max(-1.0, cos_value)))


def wrap_angle(angle: float) -> float:
    """Map an angle to (-pi, pi]."""
    angle = math.fmod(angle, 2.0 * math.pi)
    if angle <= -math.pi:
        angle += 2.0 * math.pi
    elif angle > math.pi:
        angle -= 2.0 * math.pi
    return angle


def _edge_fallback(u1: float, u2: float, a: float, b: float, through_first: bool) -> Unfolding:
    if through_first:
        return Unfolding(u1 + b, True, 0.0, False)
    return Unfolding(u2 + a, False, 0.0, False)


def unfold_triangle(
    u1: float,
    u2: float,
    a: float,
    b: float,
    c: float,
    angle_tolerance: float = 1e-6,
) -> Unfolding:
    """Candidate distance of v3 from the fixed distances u1, u2.

    Args:
        u1: distance of v1
        u2: distance of v2
        a: edge length |v2 v3|
        b: edge length |v1 v3|
        c: edge length |v1 v2|
        angle_tolerance: slack for the admissibility test theta1 + theta2 < theta0

    Returns:
        Unfolding with the candidate distance, the predecessor side and the
        signed direction offset. The distance is always finite for finite input.
    """
    u1 = float(u1)
    u2 = float(u2)
    a = float(a)
    b = float(b)
    c = float(c)

    if min(a, b, c) < EPSILON:
        return _edge_fallback(u1, u2, a, b, u1 + b <= u2 + a)

    # Heron products, negative when the triangle inequality is violated
    source_sq = (-u1 + u2 + c) * (u1 - u2 + c) * (u1 + u2 - c) * (u1 + u2 + c)
    face_sq = (-a + b + c) * (a - b + c) * (a + b - c) * (a + b + c)
    A = math.sqrt(max(source_sq, 0.0))
    B = math.sqrt(max(face_sq, 0.0))

    # virtual source below the edge, v3 above it
    sx = (c * c + u1 * u1 - u2 * u2) / (2.0 * c)
    px = (b * b + c * c - a * a) / (2.0 * c)
    dx = px - sx
    dy = (A + B) / (2.0 * c)
    u3 = math.hypot(dx, dy)

    if u3 < EPSILON:
        return Unfolding(u3, u1 <= u2, 0.0, True)

    theta0 = _safe_acos((a * a + b * b - c * c) / (2.0 * a * b))
    theta1 = _safe_acos((u3 * u3 + b * b - u1 * u1) / (2.0 * u3 * b))
    theta2 = _safe_acos((a * a + u3 * u3 - u2 * u2) / (2.0 * a * u3))

    if theta1 + theta2 < theta0 + angle_tolerance:
        if theta1 < theta2:
            return Unfolding(u3, True, theta1, True)
        return Unfolding(u3, False, wrap_angle(-theta2), True)
    return _edge_fallback(u1, u2, a, b, theta1 < theta2)


def wavefront_update(
    surface: MeshSurface,
    state: WavefrontState,
    v1: int,
    v2: int,
    v3: int,
    face: int,
    angle_tolerance: float = 1e-6,
) -> bool:
    """Try to lower the distance of the free vertex `v3` through `face`.

    `(v1, v2, v3)` must follow the winding order of `face`. On a strict
    improvement the distance, predecessor, cutting face and direction offset of
    `v3` are recorded and True is returned; re-inserting `v3` into the queue is
    up to the caller.

    Raises:
        NonManifoldError: if an edge of the face is missing from the surface.
    """
    u1 = float(state.distances[v1])
    u2 = float(state.distances[v2])
    u3 = float(state.distances[v3])
    if not (math.isfinite(u1) and math.isfinite(u2)):
        log.error(f"Vertex {v3} on face {face} updated from non-finite distances u1={u1}, u2={u2}")
        return False

    c = surface.edge_length(v1, v2)
    b = surface.edge_length(v1, v3)
    a = surface.edge_length(v2, v3)

    unfolding = unfold_triangle(u1, u2, a, b, c, angle_tolerance)
    candidate = unfolding.distance

    if not math.isfinite(candidate):
        log.error(f"Non-finite candidate for vertex {v3} on face {face}: u1={u1}, u2={u2}, a={a}, b={b}, c={c}")
        return False
    if candidate >= u3:
        return False

    state.distances[v3] = candidate
    state.predecessors[v3] = v1 if unfolding.via_first else v2
    state.direction[v3] = unfolding.angle
    state.cutting_faces[v3] = face
    return True
