from typing import Any, Dict, Optional

import numpy as np
from pydantic import BaseModel, field_validator, model_validator

from meshnav.data.mesh import MeshCfg
from meshnav.data.planner import PlannerCfg


class AppConfig(BaseModel):
    model_config = {'arbitrary_types_allowed': True}

    planner: Dict[str, Any]
    mesh: Dict[str, Any]
    start: list[float]
    goal: list[float]
    tolerance: Optional[float] = None
    output_path: Optional[str] = None
    debug: bool = False

    planner_cfg: Optional[PlannerCfg] = None
    mesh_cfg: Optional[MeshCfg] = None

    @field_validator('start', 'goal')
    def check_point(cls, v: list[float]) -> list[float]:
        if len(v) != 3 or not np.all(np.isfinite(v)):
            raise ValueError("points must have three finite coordinates")
        return v

    @model_validator(mode='after')
    def create_components(self) -> 'AppConfig':
        """Instantiate the typed planner and mesh configs from pure config data."""
        self.planner_cfg = PlannerCfg(**self.planner)
        self.mesh_cfg = MeshCfg(**self.mesh)
        return self
