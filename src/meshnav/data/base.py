"""Base classes for meshnav data models."""

import reprlib
from pathlib import Path
from typing import Any

import numpy as np
import yaml
from pydantic import BaseModel


def to_builtin(obj: Any) -> Any:
    """Recursively convert numpy arrays and scalars to plain python types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, dict):
        return {k: to_builtin(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_builtin(item) for item in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    if isinstance(obj, Path):
        return str(obj)
    return obj


class BaseCfg(BaseModel):
    """Base configuration class with YAML helpers."""

    def to_dict(self) -> dict:
        return to_builtin(self.model_dump())

    def to_yaml(self, filepath: str | Path | None = None) -> str:
        """Convert model to YAML string, optionally saving it to file."""
        yaml_str = yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        if filepath:
            Path(filepath).parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, "w") as f:
                f.write(yaml_str)
        return yaml_str

    def __str__(self) -> str:
        """Pretty YAML representation, truncated for large arrays."""
        yaml_str = self.to_yaml()
        if len(yaml_str) > 1000:
            return reprlib.repr(yaml_str)
        return yaml_str

    @classmethod
    def from_yaml(cls, filepath: str | Path) -> "BaseCfg":
        """Load model from YAML file."""
        with open(Path(filepath).expanduser()) as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))
