"""Test Hydra configuration composition and the pydantic config models."""

import math
from pathlib import Path

import hydra
import numpy as np
import pytest
import yaml
from omegaconf import OmegaConf
from pydantic import ValidationError

from meshnav.config_schema import AppConfig
from meshnav.data.mesh import MeshCfg
from meshnav.data.path import PathRecord
from meshnav.data.planner import PlannerCfg
from meshnav.data.pose import Pose
from meshnav.main import compose_app_config, load_app_config, run
from meshnav.utils.exceptions import ConfigurationError

CONF_DIR = Path(__file__).parent.parent / "conf"


def test_all_config_yamls_parse():
    yaml_files = list(CONF_DIR.rglob("*.yaml"))
    assert len(yaml_files) > 0, "No YAML files found in conf directory"
    for yaml_file in yaml_files:
        with open(yaml_file) as f:
            assert yaml.safe_load(f) is not None


def test_hydra_composition():
    with hydra.initialize(config_path="../conf", version_base=None):
        cfg = hydra.compose(config_name="config")
        assert "planner" in cfg
        assert "mesh" in cfg
        assert cfg.mesh.name == "flat"

        app_config = AppConfig(**OmegaConf.to_object(cfg))
        assert app_config.planner_cfg.step_width == pytest.approx(0.03)
        assert math.isinf(app_config.planner_cfg.cost_limit)
        assert app_config.mesh_cfg.source == "grid"


@pytest.mark.parametrize("planner", [p.stem for p in (CONF_DIR / "planner").glob("*.yaml")])
def test_planner_configs_validate(planner):
    with hydra.initialize(config_path="../conf", version_base=None):
        cfg = hydra.compose(config_name="config", overrides=[f"planner={planner}"])
        app_config = load_app_config(cfg)
        assert isinstance(app_config.planner_cfg, PlannerCfg)


@pytest.mark.parametrize("mesh", [p.stem for p in (CONF_DIR / "mesh").glob("*.yaml")])
def test_mesh_configs_validate(mesh):
    with hydra.initialize(config_path="../conf", version_base=None):
        cfg = hydra.compose(config_name="config", overrides=[f"mesh={mesh}"])
        app_config = load_app_config(cfg)
        assert app_config.mesh_cfg.name == mesh


def test_group_inheritance():
    app_config = compose_app_config(["planner=fine"])
    assert app_config.planner_cfg.step_width == pytest.approx(0.01)
    assert app_config.planner_cfg.relocation_depth == 3
    assert app_config.planner_cfg.location_tolerance == pytest.approx(0.2)

    app_config = compose_app_config(["planner=steer", "planner.step_width=0.05"])
    assert app_config.planner_cfg.steer_to_goal
    assert app_config.planner_cfg.step_width == pytest.approx(0.05)


def test_invalid_config_raises():
    with pytest.raises(ConfigurationError):
        compose_app_config(["planner.step_width=-1.0"])
    with pytest.raises(ConfigurationError):
        compose_app_config(["start=[0.0,1.0]"])


def test_planner_cfg_validation():
    with pytest.raises(ValidationError):
        PlannerCfg(step_width=0.0)
    with pytest.raises(ValidationError):
        PlannerCfg(location_tolerance=math.inf)
    with pytest.raises(ValidationError):
        PlannerCfg(relocation_depth=0)
    cfg = PlannerCfg()
    with pytest.raises(ValidationError):
        cfg.step_width = 0.1


def test_mesh_cfg_validation():
    with pytest.raises(ValidationError):
        MeshCfg(name="broken", source="file")
    with pytest.raises(ValidationError):
        MeshCfg(name="broken", size_x=-1.0)
    with pytest.raises(ValidationError):
        MeshCfg(name="broken", size_x=0.5, resolution=1.0)
    cfg = MeshCfg(name="scan", source="file", mesh_path="~/scan.ply")
    assert "~" not in str(cfg.mesh_path)


def test_base_cfg_yaml_round_trip(tmp_path):
    cfg = PlannerCfg(step_width=0.05, cost_limit=2.0, steer_to_goal=True)
    path = tmp_path / "planner.yaml"
    yaml_str = cfg.to_yaml(path)
    assert "step_width: 0.05" in yaml_str
    assert PlannerCfg.from_yaml(path) == cfg

    default = PlannerCfg()
    default.to_yaml(path)
    assert math.isinf(PlannerCfg.from_yaml(path).cost_limit)


def test_pose_from_direction():
    pose = Pose.from_direction(np.zeros(3), np.array([0.0, 2.0, 1.0]), np.array([0.0, 0.0, 1.0]))
    matrix = pose.rot.as_matrix()
    assert np.allclose(matrix[:, 0], [0.0, 1.0, 0.0])
    assert np.allclose(matrix[:, 2], [0.0, 0.0, 1.0])
    assert pose.rot.wxyz.shape == (4,)

    fallback = Pose.from_direction(np.zeros(3), np.array([0.0, 0.0, 1.0]), np.array([0.0, 0.0, 1.0]))
    assert np.allclose(fallback.rot.as_matrix()[:, 0], [1.0, 0.0, 0.0])


def test_run_saves_path_record(tmp_path):
    output = tmp_path / "path.yaml"
    app_config = compose_app_config([f"output_path='{output}'"])
    result = run(app_config)
    assert result.success
    assert output.exists()

    record = PathRecord.from_yaml(output)
    assert record.outcome == "success"
    assert record.mesh_name == "flat"
    assert len(record.poses) == len(record.faces) == len(result.path)
    assert record.cost == pytest.approx(result.cost)
    assert np.allclose(record.poses[0].pos.xyz, app_config.start)
