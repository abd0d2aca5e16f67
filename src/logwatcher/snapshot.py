from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict
import os

from .errors import StatError


@dataclass(frozen=True)
class Snapshot:
    device_id: int
    inode: int
    size: int
    mtime: float

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "Snapshot":
        # On Windows st_dev/st_ino carry the volume serial and file index.
        return cls(
            device_id=int(st.st_dev),
            inode=int(st.st_ino),
            size=int(st.st_size),
            mtime=float(st.st_mtime),
        )

    @property
    def identity(self) -> tuple:
        return (self.device_id, self.inode)

    def to_dict(self) -> Dict:
        return asdict(self)


def take_snapshot(path: str) -> Snapshot:
    try:
        st = os.stat(path)
    except (OSError, ValueError) as e:
        # ValueError: embedded NUL byte in the path
        raise StatError(path, e) from e
    return Snapshot.from_stat(st)


def same_file(a: Snapshot, b: Snapshot) -> bool:
    """Two snapshots refer to the same physical file iff (device, inode) match."""
    return a.identity == b.identity
