import logging
from typing import List, Optional

import hydra
from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf

from meshnav.config_schema import AppConfig
from meshnav.data.path import PathRecord
from meshnav.mesh.io import surface_from_config
from meshnav.plan.planner import MeshPlanner, PlanResult
from meshnav.utils.constants import CONF_DIR
from meshnav.utils.exceptions import ConfigurationError
from meshnav.utils.log import get_logger, set_debug

log = get_logger("main", "🚀")


class AppConstants:
    """Configuration constants for the main application."""
    CONFIG_PATH: str = str(CONF_DIR)
    DEFAULT_CONFIG_NAME: str = "config"


def load_app_config(cfg: DictConfig) -> AppConfig:
    """Validate a Hydra configuration."""
    try:
        return AppConfig(**OmegaConf.to_object(cfg))
    except (ValueError, TypeError, KeyError) as validation_error:
        raise ConfigurationError(f"Failed to load planner configuration: {validation_error}") from validation_error


def compose_app_config(overrides: Optional[List[str]] = None) -> AppConfig:
    """Compose the configuration outside of a Hydra application.

    Parameters:
    - overrides: Hydra overrides such as `mesh=ramp` or `planner.step_width=0.05`
    """
    from hydra.core.global_hydra import GlobalHydra

    override_list: List[str] = list(overrides or [])
    if GlobalHydra().is_initialized():
        cfg = compose(config_name=AppConstants.DEFAULT_CONFIG_NAME, overrides=override_list)
        return load_app_config(cfg)
    with initialize_config_dir(config_dir=AppConstants.CONFIG_PATH, version_base=None):
        cfg = compose(config_name=AppConstants.DEFAULT_CONFIG_NAME, overrides=override_list)
        return load_app_config(cfg)


def path_record(result: PlanResult, mesh_name: Optional[str] = None) -> PathRecord:
    return PathRecord(
        outcome=result.outcome.value,
        cost=result.cost,
        poses=list(result.poses),
        faces=[sample.face for sample in result.path],
        mesh_name=mesh_name,
    )


def run(app_config: AppConfig) -> PlanResult:
    """Build the surface, plan once and optionally save the path."""
    surface = surface_from_config(app_config.mesh_cfg)
    planner = MeshPlanner(surface, app_config.planner_cfg)
    result = planner.make_plan(app_config.start, app_config.goal, tolerance=app_config.tolerance)
    log.info(f"Outcome: {result.outcome.value}, {len(result.path)} samples, cost {result.cost:.3f} m")
    if app_config.output_path:
        path_record(result, app_config.mesh_cfg.name).to_yaml(app_config.output_path)
        log.info(f"💾 Saved path to {app_config.output_path}")
    return result


@hydra.main(
    version_base=None,
    config_path=AppConstants.CONFIG_PATH,
    config_name=AppConstants.DEFAULT_CONFIG_NAME
)
def main(cfg: DictConfig) -> None:
    """Main entrypoint for the meshnav planner."""
    logging.basicConfig(level=logging.INFO)
    app_config = load_app_config(cfg)
    if app_config.debug:
        set_debug()
    run(app_config)


if __name__ == "__main__":
    main()
