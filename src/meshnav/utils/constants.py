"""Shared constants for meshnav."""

from pathlib import Path

# Repository level hydra configuration directory
CONF_DIR = Path(__file__).resolve().parents[3] / "conf"

# Backtracking step width of 3 cm
DEFAULT_STEP_WIDTH: float = 0.03

# Search radius used when locating the start and goal faces
DEFAULT_LOCATION_TOLERANCE: float = 0.2

# Lengths below this are treated as degenerate
EPSILON: float = 1e-12
