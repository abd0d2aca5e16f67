from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import yaml


@dataclass
class FollowConfig:
    filename: str
    start_position: int = 0
    poll_interval: float = 0.2
    buffer_size: int = 8192
    checkpoint: Optional[str] = None
    from_end: bool = False


def load_config(path: str) -> FollowConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Configuration file not found: {path}\n"
            f"Please ensure the file exists or specify a different config with --config"
        )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    if not data.get("filename"):
        raise ValueError("Configuration is missing required field 'filename'")

    try:
        start_position = int(data.get("start_position", 0) or 0)
        poll_interval = float(data.get("poll_interval", 0.2))
        buffer_size = int(data.get("buffer_size", 8192))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in configuration file {path}: {e}")

    if start_position < 0:
        raise ValueError(f"'start_position' must be >= 0, got {start_position}")
    if poll_interval <= 0:
        raise ValueError(f"'poll_interval' must be > 0, got {poll_interval}")
    if buffer_size <= 0:
        raise ValueError(f"'buffer_size' must be > 0, got {buffer_size}")

    checkpoint = data.get("checkpoint")
    return FollowConfig(
        filename=str(data["filename"]),
        start_position=start_position,
        poll_interval=poll_interval,
        buffer_size=buffer_size,
        checkpoint=str(checkpoint) if checkpoint else None,
        from_end=bool(data.get("from_end", False)),
    )
