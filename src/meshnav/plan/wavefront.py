"""
Wavefront Propagation

Dijkstra style propagation of geodesic distances over the vertices of a
`MeshSurface`. The three vertices of the start face are seeded with their
straight distance to the start point and fixed right away. Each popped vertex
is fixed, then every face around its neighbors that has exactly one free
vertex is updated with the triangle unfolding rule. Propagation stops as soon
as all vertices of the goal face are fixed, so a query only touches the part of
the mesh closer to the start than the goal.

The queue is a plain `heapq` binary heap with duplicate entries; stale entries
are dropped when popped. An entry holds the distance at insertion time and a
key, that distance floored at the key being expanded. An unfolding that lands
below the current front is popped next instead of out of order, and stored
distances are never floored.
"""

import heapq
import time
from typing import Callable, NamedTuple, Optional

import numpy as np

from meshnav.data.planner import PlannerCfg
from meshnav.mesh.surface import MeshSurface
from meshnav.plan.state import FixedVertex, WavefrontState
from meshnav.plan.update import wavefront_update
from meshnav.utils.exceptions import NonManifoldError
from meshnav.utils.log import get_logger

log = get_logger("plan.wavefront", "🌊")


class Propagation(NamedTuple):
    state: WavefrontState
    goal_reached: bool
    """All vertices of the goal face are fixed."""
    canceled: bool
    popped: int
    """Number of vertices expanded."""


def _free_vertex_order(fixed: np.ndarray, a: int, b: int, c: int) -> Optional[tuple[int, int, int]]:
    """(v1, v2, v3) in winding order with v3 the single free vertex, else None."""
    fa, fb, fc = fixed[a], fixed[b], fixed[c]
    if fa and fb and not fc:
        return a, b, c
    if fc and fa and not fb:
        return c, a, b
    if fb and fc and not fa:
        return b, c, a
    return None


def propagate(
    surface: MeshSurface,
    start_point: np.ndarray,
    start_face: int,
    goal_face: int,
    config: PlannerCfg,
    is_canceled: Optional[Callable[[], bool]] = None,
) -> Propagation:
    """Propagate geodesic distances from `start_point` until `goal_face` is fixed.

    Args:
        surface: navigation surface, read only
        start_point: exact start position inside `start_face`
        start_face: face containing the start point
        goal_face: propagation stops once all of its vertices are fixed
        config: planner parameters, `cost_limit` and `angle_tolerance` are used
        is_canceled: polled once per popped vertex

    Returns:
        Propagation holding the vertex maps. They are kept on cancel as well.
    """
    start_point = np.asarray(start_point, dtype=np.float64)
    state = WavefrontState.empty(surface.num_vertices)
    heap: list[tuple[float, float, int]] = []

    seeds = []
    for v in surface.vertices_of_face(start_face):
        if not surface.is_valid(v):
            log.error(f"Start face {start_face} has non manifold vertex {v}, not seeding it")
            continue
        dist = float(np.linalg.norm(start_point - surface.position(v)))
        state.distances[v] = dist
        state.fixed[v] = True
        heapq.heappush(heap, (dist, dist, v))
        seeds.append(v)
    state.seeds = tuple(seeds)

    goal_vertices = surface.vertices_of_face(goal_face)
    expanded = np.zeros(surface.num_vertices, dtype=bool)
    lethal_limit = config.cost_limit
    goal_reached = False
    canceled = False
    popped = 0

    t_start = time.perf_counter()
    log.info(f"Start wave front propagation from face {start_face} with {len(seeds)} seeds")

    while heap:
        if is_canceled is not None and is_canceled():
            canceled = True
            break

        front, _, current = heapq.heappop(heap)
        if expanded[current]:
            continue
        expanded[current] = True
        state.fixed[current] = True
        state.fix_order.append(FixedVertex(current, float(state.distances[current]), front))
        popped += 1

        if all(state.fixed[g] for g in goal_vertices):
            log.info("Wave front reached the goal!")
            goal_reached = True
            break

        try:
            neighbors = surface.neighbors(current)
        except NonManifoldError as e:
            log.error(f"Found non manifold vertex while expanding: {e}")
            continue

        for nh in neighbors:
            if not surface.is_valid(nh):
                continue
            try:
                faces = surface.faces_of_vertex(nh)
            except NonManifoldError as e:
                log.error(f"Found non manifold vertex while collecting faces: {e}")
                continue

            for fh in faces:
                a, b, c = surface.vertices_of_face(fh)
                if not (surface.is_valid(a) and surface.is_valid(b) and surface.is_valid(c)):
                    log.debug(f"Skipping face {fh} with a non manifold vertex")
                    continue

                order = _free_vertex_order(state.fixed, a, b, c)
                if order is None:
                    continue
                v1, v2, v3 = order
                if surface.cost(v3) >= lethal_limit:
                    continue

                try:
                    if wavefront_update(surface, state, v1, v2, v3, int(fh), config.angle_tolerance):
                        dist = float(state.distances[v3])
                        heapq.heappush(heap, (max(dist, front), dist, v3))
                except NonManifoldError as e:
                    log.error(f"Found non manifold face {fh}: {e}")
                    continue

    execution_ms = (time.perf_counter() - t_start) * 1e3
    log.info(f"Execution time (ms): {execution_ms:.2f} for {popped} of {surface.num_vertices} vertices")
    if canceled:
        log.warning("Wave front propagation has been canceled!")
    elif not goal_reached:
        log.warning("Wave front queue exhausted before the goal face was fixed")

    return Propagation(state=state, goal_reached=goal_reached, canceled=canceled, popped=popped)
