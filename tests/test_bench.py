import numpy as np

from meshnav.bench import BenchConfig, run_bench, sample_surface_points
from meshnav.mesh.io import grid_surface
from meshnav.plan.outcome import PlanOutcome


def test_sample_surface_points():
    surface = grid_surface(1.0, 1.0, 0.25)
    points = sample_surface_points(surface, 50, np.random.default_rng(0))
    assert points.shape == (50, 3)
    assert np.all((points[:, :2] >= 0.0) & (points[:, :2] <= 1.0))
    for point in points:
        assert surface.containing_face(point, 1e-6) is not None


def test_run_bench_on_flat_grid():
    report = run_bench(BenchConfig(size=1.0, resolution=0.1, num_queries=5, seed=1))
    assert sum(report.outcomes.values()) == 5
    assert report.outcomes[PlanOutcome.SUCCESS] == 5
    assert len(report.times_ms) == 5
    assert np.all(report.stretch >= 1.0 - 1e-9)
