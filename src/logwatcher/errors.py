from __future__ import annotations
from typing import Optional


class WatcherError(Exception):
    """Base class for everything the watcher reports."""


# -------------------------
# File-system failures
# -------------------------
class FileAccessError(WatcherError, OSError):
    """
    An OS call on the watched file failed.
    Keeps the path and the underlying OSError (also chained as __cause__).
    """
    op = "access"

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.cause = cause
        msg = f"logwatcher: {self.op} {path!r} failed"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.args[0]


class StatError(FileAccessError):
    op = "stat"


class OpenError(FileAccessError):
    op = "open"


class SeekError(FileAccessError):
    op = "seek"


class ReadError(FileAccessError):
    op = "read"


class CloseError(FileAccessError):
    op = "close"


# -------------------------
# State failures
# -------------------------
class PositionError(WatcherError, ValueError):
    def __init__(self, position: int, size: int) -> None:
        self.position = position
        self.size = size
        super().__init__(f"logwatcher: set_last_position({position}) outside [0, {size}]")


class NoStateError(WatcherError, LookupError):
    def __init__(self) -> None:
        super().__init__("logwatcher: no current state of file")
