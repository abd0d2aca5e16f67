from __future__ import annotations
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Optional
import logging
import os
import tempfile
import yaml

from .snapshot import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Checkpoint:
    """Where a reader got to in one generation of a log file."""
    filename: str
    device_id: int
    inode: int
    position: int

    def to_dict(self) -> Dict:
        return asdict(self)

    def matches(self, snapshot: Snapshot) -> bool:
        return self.device_id == snapshot.device_id and self.inode == snapshot.inode


def save_checkpoint(path: str, cp: Checkpoint) -> None:
    """Write the checkpoint as YAML, replacing any previous one atomically."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".checkpoint-", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.safe_dump(cp.to_dict(), f, sort_keys=False)
        os.replace(tmp, target)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    logger.debug("saved checkpoint %s -> %s", cp, target)


def load_checkpoint(path: str) -> Optional[Checkpoint]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return None
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in checkpoint file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Checkpoint file {path} must contain a mapping")

    for key in ("filename", "device_id", "inode", "position"):
        if key not in data:
            raise ValueError(f"Checkpoint file {path} is missing required field '{key}'")

    try:
        cp = Checkpoint(
            filename=str(data["filename"]),
            device_id=int(data["device_id"]),
            inode=int(data["inode"]),
            position=int(data["position"]),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in checkpoint file {path}: {e}")

    if cp.position < 0:
        raise ValueError(f"Checkpoint file {path} has negative position {cp.position}")
    return cp


def resume_position(cp: Optional[Checkpoint], snapshot: Snapshot) -> int:
    """
    Offset to resume from: the checkpointed one if the file is still the
    same generation and has not shrunk below it, otherwise the start.
    """
    if cp is None:
        return 0
    if not cp.matches(snapshot):
        logger.debug("checkpoint %s is for another generation, starting over", cp)
        return 0
    if snapshot.size < cp.position:
        logger.debug("file shrank below checkpoint %s, starting over", cp)
        return 0
    return cp.position
