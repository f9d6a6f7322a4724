"""
Path Backtracking

Samples the path by walking the vector field from the goal back to the start
in fixed steps. Every step direction is a barycentric blend of the field at the
three vertices of the current face, which gives a smooth path instead of the
zig-zag of a vertex to vertex walk. Faces touching a seed vertex of the
wavefront head straight for the start point. When a step leaves the current
face, the new face is looked up in a bounded neighborhood of the old one.
"""

from typing import Callable, NamedTuple, Optional

import numpy as np

from meshnav.data.planner import PlannerCfg
from meshnav.mesh.surface import MeshSurface
from meshnav.plan.outcome import PlanOutcome
from meshnav.plan.state import WavefrontState
from meshnav.plan.vector_field import VectorField
from meshnav.utils.log import get_logger

log = get_logger("plan.backtrack", "🔙")


class PathSample(NamedTuple):
    position: np.ndarray
    face: int


class Backtrack(NamedTuple):
    outcome: PlanOutcome
    samples: list[PathSample]
    """Samples from the goal toward the start, partial on failure."""


def backtrack_path(
    surface: MeshSurface,
    field: VectorField,
    state: WavefrontState,
    start_point: np.ndarray,
    start_face: int,
    goal_point: np.ndarray,
    goal_face: int,
    config: PlannerCfg,
    is_canceled: Optional[Callable[[], bool]] = None,
) -> Backtrack:
    start_point = np.asarray(start_point, dtype=np.float64)
    goal_point = np.asarray(goal_point, dtype=np.float64)
    step = config.step_width

    if not any(state.is_resolved(v) for v in surface.vertices_of_face(goal_face)):
        log.warning("Predecessor of the goal is not set! No path found!")
        return Backtrack(PlanOutcome.NO_PATH_FOUND, [])

    seeds = set(state.seeds)
    current_pos = goal_point.copy()
    current_face = goal_face
    samples = [PathSample(current_pos.copy(), current_face)]

    log.info("Start vector field back tracking!")
    steps = 0
    while np.linalg.norm(current_pos - start_point) >= step:
        if is_canceled is not None and is_canceled():
            log.warning("Back tracking has been canceled!")
            return Backtrack(PlanOutcome.CANCELED, samples)
        if steps >= config.max_backtrack_steps:
            log.warning(f"Back tracking gave up after {steps} steps")
            return Backtrack(PlanOutcome.NO_PATH_FOUND, samples)

        if current_face == start_face or seeds.intersection(surface.vertices_of_face(current_face)):
            # seeds carry no field direction
            direction = start_point - current_pos
            direction = direction / np.linalg.norm(direction)
        else:
            direction = field.sample(current_pos, current_face)
        if direction is None:
            log.warning(f"No field direction in face {current_face}, while back-tracking from the goal")
            return Backtrack(PlanOutcome.NO_PATH_FOUND, samples)

        ahead = current_pos + step * direction
        if surface.contains(ahead, current_face, step):
            next_face = current_face
        else:
            next_face = surface.find_face_near(
                ahead,
                current_face,
                tolerance=step,
                depth=config.relocation_depth,
                max_faces=config.relocation_max_faces,
            )
        if next_face is None:
            log.warning("Could not find a valid path, while back-tracking from the goal")
            return Backtrack(PlanOutcome.NO_PATH_FOUND, samples)

        current_pos, _ = surface.project_to_face(ahead, next_face)
        current_face = next_face
        samples.append(PathSample(current_pos.copy(), current_face))
        steps += 1
        log.debug(f"Step {steps}: face {current_face}, position {current_pos}")

    samples.append(PathSample(start_point.copy(), start_face))
    log.info(f"Successfully finished vector field back tracking with {len(samples)} samples!")
    return Backtrack(PlanOutcome.SUCCESS, samples)
