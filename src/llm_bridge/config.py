"""Configuration models and loaders for llm-bridge."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

OVERLAP_POLICIES = ("replace", "reject")
CONFIG_FILE_NAMES = ("llm_bridge.yaml", "llm_bridge.yml", "pyproject.toml")


@dataclass(frozen=True)
class ProgressConfig:
    """Configuration for the progress ticker.

    Attributes:
        label: Fixed text at the start of the status line.
        marker: Character repeated after the label.
        max_markers: Marker count after which the animation restarts at one.
        interval_s: Seconds between re-renders.
    """

    label: str = "In progress"
    marker: str = "."
    max_markers: int = 3
    interval_s: float = 1.0


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration for the application.

    Attributes:
        tool_name: External text-generation command placed before the arguments.
        shell: Shell used to interpret the assembled command string.
        env: Extra environment variables for the external tool.
        overlap_policy: What to do when a job is started while another runs:
            "replace" keeps tracking only the new job, "reject" refuses it.
        progress: Progress ticker settings.
        log_level: Default logging level name.
    """

    tool_name: str = "llm"
    shell: str = "sh"
    env: dict[str, str] = field(default_factory=dict)
    overlap_policy: str = "replace"
    progress: ProgressConfig = field(default_factory=lambda: ProgressConfig())
    log_level: str = "WARNING"


def load_config(path: Path | None = None) -> AppConfig:
    """Load application configuration from disk.

    Args:
        path: Optional path to a configuration file or directory.

    Returns:
        Parsed AppConfig with defaults applied when no config exists.
    """

    config_path = _resolve_config_path(path)
    if config_path is None:
        return AppConfig()

    if config_path.suffix in {".yaml", ".yml"}:
        raw_data = _load_yaml(config_path)
    elif config_path.name == "pyproject.toml" or config_path.suffix == ".toml":
        raw_data = _load_toml(config_path)
    else:
        raise ValueError(f"Unsupported config file type: {config_path}")

    return _parse_app_config(raw_data)


def config_to_dict(config: AppConfig) -> dict[str, Any]:
    """Serialize an AppConfig into a JSON-compatible dictionary."""

    return {
        "tool_name": config.tool_name,
        "shell": config.shell,
        "env": dict(config.env),
        "overlap_policy": config.overlap_policy,
        "progress": {
            "label": config.progress.label,
            "marker": config.progress.marker,
            "max_markers": config.progress.max_markers,
            "interval_s": config.progress.interval_s,
        },
        "log_level": config.log_level,
    }


def _resolve_config_path(path: Path | None) -> Path | None:
    candidate_paths: list[Path] = []
    if path is None:
        candidate_paths.extend(Path(name) for name in CONFIG_FILE_NAMES)
    elif path.is_dir():
        candidate_paths.extend(path / name for name in CONFIG_FILE_NAMES)
    else:
        candidate_paths.append(path)

    for candidate in candidate_paths:
        if candidate.exists():
            return candidate
    return None


def _load_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    if path.name == "pyproject.toml":
        tool_config = data.get("tool", {}).get("llm_bridge", {})
        if not isinstance(tool_config, dict):
            raise ValueError("tool.llm_bridge must be a mapping.")
        return tool_config
    if not isinstance(data, dict):
        raise ValueError("TOML configuration must be a mapping.")
    return data


def _load_yaml(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None
    if data is not None:
        if not isinstance(data, dict):
            raise ValueError("YAML configuration must be a mapping.")
        return data
    import yaml

    parsed = yaml.safe_load(text)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError("YAML configuration must be a mapping.")
    return parsed


def _parse_app_config(raw_data: dict[str, Any]) -> AppConfig:
    overlap_policy = str(raw_data.get("overlap_policy", "replace")).strip().lower()
    if overlap_policy not in OVERLAP_POLICIES:
        raise ValueError(
            f"overlap_policy must be one of {', '.join(OVERLAP_POLICIES)}; got {overlap_policy!r}."
        )
    tool_name = str(raw_data.get("tool_name", "llm")).strip()
    if not tool_name:
        raise ValueError("tool_name must not be empty.")

    return AppConfig(
        tool_name=tool_name,
        shell=str(raw_data.get("shell", "sh")),
        env=_parse_env(raw_data.get("env", {})),
        overlap_policy=overlap_policy,
        progress=_parse_progress_config(raw_data.get("progress", {})),
        log_level=str(raw_data.get("log_level", "WARNING")),
    )


def _parse_progress_config(raw: Any) -> ProgressConfig:
    if not isinstance(raw, dict):
        return ProgressConfig()
    max_markers = int(raw.get("max_markers", 3))
    interval_s = float(raw.get("interval_s", 1.0))
    if max_markers < 1:
        raise ValueError("progress.max_markers must be at least 1.")
    if interval_s <= 0:
        raise ValueError("progress.interval_s must be positive.")
    return ProgressConfig(
        label=str(raw.get("label", "In progress")),
        marker=str(raw.get("marker", ".")),
        max_markers=max_markers,
        interval_s=interval_s,
    )


def _parse_env(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    return {str(key): str(value) for key, value in raw.items()}
