import logging
from dataclasses import asdict
from pprint import pformat
from typing import Any

import tyro

LOG_FORMAT: str = "%(asctime)s %(levelname)s: %(message)s"
SUBMODULES: list[str] = ["data", "mesh", "plan", "utils"]


def get_logger(name: str, emoji: str = "❓") -> logging.Logger:
    """Get a logger with a specific name."""
    _log = logging.getLogger(f"meshnav.{name}")
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(f"{emoji} {LOG_FORMAT}"))
    if not _log.hasHandlers():
        _log.addHandler(handler)
    _log.propagate = False
    return _log


log = get_logger("utils.log", "📝")


def print_config(args: Any, log: logging.Logger = log) -> None:
    log.debug(f"🛠️ Full Config of type {type(args)}:")
    log.debug(pformat(asdict(args)))


def set_debug(submodules: list[str] = SUBMODULES) -> None:
    logging.getLogger().setLevel(logging.DEBUG)
    for submodule in submodules:
        logging.getLogger(f"meshnav.{submodule}").setLevel(logging.DEBUG)
    log.debug("🐛 Debug mode enabled.")


def setup_log_with_config(config: Any, submodules: list[str] = SUBMODULES) -> Any:
    args = tyro.cli(config)
    logging.basicConfig(level=logging.INFO)
    if args.debug:
        set_debug(submodules)
    return args
