from meshnav.data.base import BaseCfg
from meshnav.data.mesh import MeshCfg
from meshnav.data.path import PathRecord
from meshnav.data.planner import PlannerCfg
from meshnav.data.pose import Pos, Pose, Rot

__all__ = ["BaseCfg", "MeshCfg", "PathRecord", "PlannerCfg", "Pos", "Pose", "Rot"]
