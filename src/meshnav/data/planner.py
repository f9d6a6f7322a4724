import math

from pydantic import field_validator

from meshnav.data.base import BaseCfg
from meshnav.utils.constants import DEFAULT_LOCATION_TOLERANCE, DEFAULT_STEP_WIDTH


class PlannerCfg(BaseCfg):
    """Immutable parameters for a single planning call."""

    model_config = {"frozen": True}

    location_tolerance: float = DEFAULT_LOCATION_TOLERANCE
    """Maximum distance in meters between a query point and its containing face."""
    step_width: float = DEFAULT_STEP_WIDTH
    """Backtracking step length in meters."""
    cost_limit: float = math.inf
    """Vertices with a cost at or above this limit are treated as lethal."""
    angle_tolerance: float = 1e-6
    """Slack in radians for the unfolding admissibility test."""
    relocation_depth: int = 2
    """Face rings searched when the backtracking position leaves its face."""
    relocation_max_faces: int = 256
    """Upper bound of faces visited by a single relocation search."""
    max_backtrack_steps: int = 100_000
    """Backtracking gives up after this many steps."""
    steer_to_goal: bool = False
    """Seed the wavefront at the goal so the vector field steers toward the goal."""

    @field_validator("location_tolerance", "step_width")
    def must_be_positive(cls, v: float) -> float:
        if not v > 0 or not math.isfinite(v):
            raise ValueError("must be a positive finite number")
        return v

    @field_validator("cost_limit")
    def cost_limit_positive(cls, v: float) -> float:
        if not v > 0:
            raise ValueError("cost_limit must be positive")
        return v

    @field_validator("angle_tolerance")
    def angle_tolerance_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("angle_tolerance must not be negative")
        return v

    @field_validator("relocation_depth", "relocation_max_faces", "max_backtrack_steps")
    def must_be_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v
