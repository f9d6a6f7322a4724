from enum import Enum


class PlanOutcome(str, Enum):
    """Closed set of results of a planning call."""

    SUCCESS = "success"
    INVALID_START = "invalid_start"
    INVALID_GOAL = "invalid_goal"
    NO_PATH_FOUND = "no_path_found"
    CANCELED = "canceled"


class PlanState(str, Enum):
    """Phases of a planning call. The last phase reached is kept on the result."""

    RESOLVING_ENDPOINTS = "resolving_endpoints"
    PROPAGATING = "propagating"
    GOAL_FIXED = "goal_fixed"
    BUILDING_FIELD = "building_field"
    BACKTRACKING = "backtracking"
    DONE = "done"
    CANCELED = "canceled"
    INVALID_START = "invalid_start"
    INVALID_GOAL = "invalid_goal"
    NO_PATH_FOUND = "no_path_found"
