"""Configuration models and loading for hookrelay."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

PROJECT_CONFIG_FILE = ".hookrelay.yaml"


class HookRelayConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bubble_exceptions: bool = True
    deprecation_notices: dict[str, str] = Field(default_factory=dict)
    manifests: list[str] = Field(default_factory=list)
    log_level: str = "INFO"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text())
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"YAML at {path} must decode to a mapping")
    return data or {}


def load_effective_config(
    project_path: str | Path,
    system_defaults: dict[str, Any] | None = None,
    runtime_override: dict[str, Any] | None = None,
) -> HookRelayConfig:
    """Load config with precedence runtime > project .hookrelay.yaml > system."""
    project = Path(project_path)
    project_config = _load_yaml(project / PROJECT_CONFIG_FILE)

    merged: dict[str, Any] = {}
    if system_defaults:
        merged = _deep_merge(merged, system_defaults)
    if project_config:
        merged = _deep_merge(merged, project_config)
    if runtime_override:
        merged = _deep_merge(merged, runtime_override)

    return HookRelayConfig.model_validate(merged)
