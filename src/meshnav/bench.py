import logging
import time
from collections import Counter
from dataclasses import dataclass
from typing import Optional

import numpy as np

from meshnav.data.planner import PlannerCfg
from meshnav.mesh.io import grid_surface, load_surface
from meshnav.mesh.surface import MeshSurface
from meshnav.plan.outcome import PlanOutcome
from meshnav.plan.planner import MeshPlanner
from meshnav.utils.log import get_logger, print_config, setup_log_with_config

log = get_logger("bench", "⏱️")


@dataclass
class BenchConfig:
    debug: bool = False
    """Enable debug logging."""

    mesh_path: Optional[str] = None
    """Mesh file to plan on, a generated grid is used when empty."""
    size: float = 2.0
    """Side length of the generated grid in meters."""
    resolution: float = 0.1
    """Spacing of the generated grid in meters."""
    slope: float = 0.0
    """Height gain along x of the generated grid."""

    num_queries: int = 20
    """Number of random start/goal pairs."""
    seed: int = 0
    """Random seed for the start/goal pairs."""
    step_width: float = 0.03
    """Backtracking step length in meters."""


@dataclass
class BenchReport:
    outcomes: Counter
    times_ms: np.ndarray
    stretch: np.ndarray
    """Path length divided by the straight distance, successful queries only."""


def sample_surface_points(surface: MeshSurface, num: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform random points on the surface, faces weighted by area."""
    probs = surface.face_areas / surface.face_areas.sum()
    faces = rng.choice(surface.num_faces, size=num, p=probs)
    r1 = np.sqrt(rng.random(num))
    r2 = rng.random(num)
    weights = np.column_stack([1.0 - r1, r1 * (1.0 - r2), r1 * r2])
    corners = surface.vertices[surface.faces[faces]]
    return np.einsum("ij,ijk->ik", weights, corners)


def run_bench(config: BenchConfig) -> BenchReport:
    if config.mesh_path:
        surface = load_surface(config.mesh_path)
    else:
        surface = grid_surface(config.size, config.size, config.resolution, config.slope)
    planner = MeshPlanner(surface, PlannerCfg(step_width=config.step_width))

    rng = np.random.default_rng(config.seed)
    starts = sample_surface_points(surface, config.num_queries, rng)
    goals = sample_surface_points(surface, config.num_queries, rng)

    outcomes: Counter = Counter()
    times_ms = []
    stretch = []
    for start, goal in zip(starts, goals):
        t_start = time.perf_counter()
        result = planner.make_plan(start, goal)
        times_ms.append((time.perf_counter() - t_start) * 1e3)
        outcomes[result.outcome] += 1
        straight = float(np.linalg.norm(goal - start))
        if result.outcome == PlanOutcome.SUCCESS and straight > config.step_width:
            stretch.append(result.cost / straight)

    report = BenchReport(outcomes=outcomes, times_ms=np.array(times_ms), stretch=np.array(stretch))
    log.info(f"Outcomes: {dict((k.value, v) for k, v in outcomes.items())}")
    log.info(f"Planning time (ms): mean {report.times_ms.mean():.2f}, max {report.times_ms.max():.2f}")
    if len(report.stretch):
        log.info(f"Path stretch: mean {report.stretch.mean():.4f}, max {report.stretch.max():.4f}")
    return report


def main() -> None:
    args = setup_log_with_config(BenchConfig)
    if args.debug:
        log.setLevel(logging.DEBUG)
    print_config(args)
    run_bench(args)


if __name__ == "__main__":
    main()
