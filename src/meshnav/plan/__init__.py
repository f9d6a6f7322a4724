from meshnav.plan.outcome import PlanOutcome, PlanState
from meshnav.plan.planner import MeshPlanner, PlanResult

__all__ = ["MeshPlanner", "PlanOutcome", "PlanResult", "PlanState"]
