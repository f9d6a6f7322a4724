"""
Mesh Planner

Entry point of a planning call. Resolves the start and goal to faces,
propagates the wavefront, builds the vector field and backtracks the path.
The outcome is one of `PlanOutcome`; partial results are kept on failure.

A planner instance is not reentrant: concurrent `make_plan` calls must be
serialized by the caller. `cancel` may be called from another thread and is
observed once per popped vertex and once per backtracking step.
"""

import threading
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from meshnav.data.planner import PlannerCfg
from meshnav.data.pose import Pose
from meshnav.mesh.surface import MeshSurface
from meshnav.plan.backtrack import PathSample, backtrack_path
from meshnav.plan.outcome import PlanOutcome, PlanState
from meshnav.plan.state import WavefrontState
from meshnav.plan.vector_field import VectorField, build_vector_field
from meshnav.plan.wavefront import propagate
from meshnav.utils.log import get_logger

log = get_logger("plan.planner", "🗺️")


@dataclass(frozen=True)
class PlanResult:
    outcome: PlanOutcome
    state: PlanState
    """Last phase reached by the call."""
    path: tuple[PathSample, ...] = ()
    """Samples ordered from start to goal, empty unless the call succeeded."""
    poses: tuple[Pose, ...] = ()
    cost: float = 0.0
    """Length of the sampled path in meters."""
    wavefront: Optional[WavefrontState] = None
    vector_field: Optional[VectorField] = None
    partial_path: tuple[PathSample, ...] = field(default=(), repr=False)
    """Samples collected before a failed or canceled backtracking."""

    @property
    def success(self) -> bool:
        return self.outcome == PlanOutcome.SUCCESS

    @property
    def distances(self) -> Optional[np.ndarray]:
        return None if self.wavefront is None else self.wavefront.distances

    @property
    def predecessors(self) -> Optional[np.ndarray]:
        return None if self.wavefront is None else self.wavefront.predecessors

    def positions(self) -> np.ndarray:
        if not self.path:
            return np.zeros((0, 3), dtype=np.float64)
        return np.stack([sample.position for sample in self.path])


def path_length(samples: tuple[PathSample, ...]) -> float:
    if len(samples) < 2:
        return 0.0
    points = np.stack([s.position for s in samples])
    return float(np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1)))


def path_poses(surface: MeshSurface, samples: tuple[PathSample, ...]) -> tuple[Pose, ...]:
    """Poses along the path, x toward the next sample and z along the face normal."""
    poses = []
    direction = np.zeros(3)
    for i, sample in enumerate(samples):
        if i + 1 < len(samples):
            direction = samples[i + 1].position - sample.position
        poses.append(Pose.from_direction(sample.position, direction, surface.face_normal(sample.face)))
    return tuple(poses)


class MeshPlanner:
    """Geodesic path planner on a triangle mesh surface."""

    def __init__(self, surface: MeshSurface, config: Optional[PlannerCfg] = None):
        self.surface = surface
        self.config = config or PlannerCfg()
        self._cancel = threading.Event()
        self.phase = PlanState.DONE

    def _enter(self, phase: PlanState) -> None:
        log.debug(f"{self.phase.value} -> {phase.value}")
        self.phase = phase

    def cancel(self) -> bool:
        self._cancel.set()
        return True

    def is_canceled(self) -> bool:
        return self._cancel.is_set()

    def make_plan(
        self,
        start: np.ndarray,
        goal: np.ndarray,
        tolerance: Optional[float] = None,
        config: Optional[PlannerCfg] = None,
    ) -> PlanResult:
        """Plan a surface path from `start` to `goal`.

        When both points share a face the path is exactly `[start, goal]`.
        Otherwise the endpoints are projected onto the plane of their face.

        Args:
            start: start position (3,)
            goal: goal position (3,)
            tolerance: face location tolerance, defaults to `config.location_tolerance`
            config: overrides the planner config for this call only
        """
        cfg = config or self.config
        tolerance = cfg.location_tolerance if tolerance is None else tolerance
        self._cancel.clear()
        self._enter(PlanState.RESOLVING_ENDPOINTS)

        start = np.asarray(start, dtype=np.float64)
        goal = np.asarray(goal, dtype=np.float64)

        start_face = self.surface.containing_face(start, tolerance)
        goal_face = self.surface.containing_face(goal, tolerance)
        if start_face is None:
            log.warning(f"No face within {tolerance} m of start {start}")
            self._enter(PlanState.INVALID_START)
            return PlanResult(PlanOutcome.INVALID_START, PlanState.INVALID_START)
        if goal_face is None:
            log.warning(f"No face within {tolerance} m of goal {goal}")
            self._enter(PlanState.INVALID_GOAL)
            return PlanResult(PlanOutcome.INVALID_GOAL, PlanState.INVALID_GOAL)

        if start_face == goal_face:
            log.info(f"Start and goal share face {start_face}")
            self._enter(PlanState.DONE)
            path = (PathSample(start.copy(), start_face), PathSample(goal.copy(), goal_face))
            return PlanResult(
                PlanOutcome.SUCCESS,
                PlanState.DONE,
                path=path,
                poses=path_poses(self.surface, path),
                cost=path_length(path),
            )

        # endpoints within the tolerance are snapped onto their face plane
        start, _ = self.surface.project_to_face(start, start_face)
        goal, _ = self.surface.project_to_face(goal, goal_face)

        # The wavefront is seeded at `source` and the path is backtracked from `target`.
        if cfg.steer_to_goal:
            source, source_face, target, target_face = goal, goal_face, start, start_face
        else:
            source, source_face, target, target_face = start, start_face, goal, goal_face

        self._enter(PlanState.PROPAGATING)
        propagation = propagate(self.surface, source, source_face, target_face, cfg, self.is_canceled)
        wavefront = propagation.state
        if propagation.canceled:
            self._enter(PlanState.CANCELED)
            wavefront.freeze()
            return PlanResult(PlanOutcome.CANCELED, PlanState.CANCELED, wavefront=wavefront)

        if propagation.goal_reached:
            self._enter(PlanState.GOAL_FIXED)
        self._enter(PlanState.BUILDING_FIELD)
        vector_field = build_vector_field(self.surface, wavefront)
        self._enter(PlanState.BACKTRACKING)
        backtrack = backtrack_path(
            self.surface,
            vector_field,
            wavefront,
            source,
            source_face,
            target,
            target_face,
            cfg,
            self.is_canceled,
        )
        wavefront.freeze()

        samples = backtrack.samples if cfg.steer_to_goal else backtrack.samples[::-1]
        samples = tuple(samples)
        if backtrack.outcome != PlanOutcome.SUCCESS:
            state = PlanState.CANCELED if backtrack.outcome == PlanOutcome.CANCELED else PlanState.NO_PATH_FOUND
            self._enter(state)
            return PlanResult(
                backtrack.outcome,
                state,
                wavefront=wavefront,
                vector_field=vector_field,
                partial_path=samples,
            )

        self._enter(PlanState.DONE)
        cost = path_length(samples)
        log.info(f"Path with {len(samples)} samples and length {cost:.3f} m")
        return PlanResult(
            PlanOutcome.SUCCESS,
            PlanState.DONE,
            path=samples,
            poses=path_poses(self.surface, samples),
            cost=cost,
            wavefront=wavefront,
            vector_field=vector_field,
        )
