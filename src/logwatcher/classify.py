from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .snapshot import Snapshot, same_file


class Action(str, Enum):
    FIRST_TIME = "first-time"
    ROTATED = "rotated"
    TRUNCATED = "truncated"
    GREW = "grew"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class Classification:
    """
    Outcome of comparing the cached snapshot with a fresh one.

    cause:        what was observed (any Action)
    action:       what the reader should do, GREW or UNCHANGED
    offset:       resume offset to use for the next read
    drop_cached:  the cached snapshot must be discarded before reading
    """
    cause: Action
    action: Action
    offset: int
    drop_cached: bool = False

    @property
    def should_read(self) -> bool:
        return self.action is Action.GREW


def classify(
    cached: Optional[Snapshot],
    fresh: Snapshot,
    last_offset: int,
    start_offset: int = 0,
) -> Classification:
    """
    Decide what happened to the file since the last successful read.
    Rules are evaluated in order; the first match wins.
    """
    offset = last_offset
    new_file = False

    if cached is None:
        cause = Action.FIRST_TIME
        offset = start_offset
        new_file = True
    elif not same_file(cached, fresh):
        cause = Action.ROTATED
        # a new generation is read from its beginning
        offset = 0
        new_file = True
    elif fresh.size < cached.size:
        cause = Action.TRUNCATED
        offset = 0
        new_file = True
    elif fresh.size > cached.size:
        cause = Action.GREW
    elif fresh.size > last_offset:
        # residual: an earlier read stopped short of the cached size
        cause = Action.GREW
    else:
        cause = Action.UNCHANGED

    if new_file:
        if fresh.size > 0:
            return Classification(cause, Action.GREW, offset, drop_cached=True)
        return Classification(cause, Action.UNCHANGED, offset)

    return Classification(cause, cause, offset)
