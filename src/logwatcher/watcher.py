from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import io
import os

from .checkpoint import Checkpoint
from .classify import Action, classify
from .errors import (
    CloseError,
    NoStateError,
    OpenError,
    PositionError,
    ReadError,
    SeekError,
    StatError,
    WatcherError,
)
from .sink import LogSink, NullSink
from .snapshot import Snapshot, take_snapshot


# -------------------------
# Model
# -------------------------
@dataclass(frozen=True)
class WatcherConfig:
    filename: str
    start_position: int = 0
    log_sink: LogSink = field(default_factory=NullSink, compare=False)

    def __post_init__(self) -> None:
        if not self.filename:
            raise ValueError("filename is required")
        if self.start_position < 0:
            raise ValueError(f"start_position must be >= 0, got {self.start_position}")
        if self.log_sink is None:
            object.__setattr__(self, "log_sink", NullSink())


class Status(str, Enum):
    OK = "ok"
    END_OF_STREAM = "end-of-stream"
    ERROR = "error"


@dataclass(frozen=True)
class ReadResult:
    """
    What one read call produced.
    n is the number of bytes copied into the caller's buffer. It is only
    non-zero alongside an error when closing the file failed after the read.
    """
    n: int
    status: Status
    error: Optional[WatcherError] = None

    @property
    def ok(self) -> bool:
        return self.status is Status.OK

    @property
    def end_of_stream(self) -> bool:
        return self.status is Status.END_OF_STREAM

    def raise_for_error(self) -> "ReadResult":
        if self.error is not None:
            raise self.error
        return self


_END_OF_STREAM = ReadResult(0, Status.END_OF_STREAM)
_NEW_GENERATION = (Action.ROTATED, Action.TRUNCATED)


# -------------------------
# Watcher
# -------------------------
class Watcher(io.RawIOBase):
    """
    Incremental reader over a log file that may be rotated or truncated.

    Every read stats the path, decides whether the file was rotated,
    truncated, grew or is unchanged, and then performs at most one read
    from the resume offset. The file is opened and closed within the call.

    Wrap it in io.BufferedReader to iterate lines; iteration stops at the
    current end of the file and can be resumed later.

    NB: the unread tail of a rotated file is abandoned, so keep the time
    between reads short.
    """

    def __init__(self, config: WatcherConfig) -> None:
        super().__init__()
        self._config = config
        self._sink: LogSink = config.log_sink
        self._last_offset: int = 0
        self._last_snapshot: Optional[Snapshot] = None
        self._generation: int = 0

    @classmethod
    def from_options(
        cls,
        filename: str,
        start_position: int = 0,
        log_sink: Optional[LogSink] = None,
    ) -> "Watcher":
        return cls(WatcherConfig(filename, start_position, log_sink or NullSink()))

    def __repr__(self) -> str:
        return (
            f"<Watcher filename={self._config.filename!r} "
            f"last_offset={self._last_offset} snapshot={self._last_snapshot}>"
        )

    @property
    def config(self) -> WatcherConfig:
        return self._config

    @property
    def generation(self) -> int:
        """Counts rotations and truncations the watcher has acted on."""
        return self._generation

    @property
    def filename(self) -> str:
        return self._config.filename

    # -------------------------
    # Position / state accessors
    # -------------------------
    def last_position(self) -> int:
        return self._last_offset

    def set_last_position(self, position: int) -> None:
        size = self.size()
        if position < 0 or position > size:
            raise PositionError(position, size)
        self._last_offset = position

    def refresh_state(self) -> None:
        """Make the cached snapshot match the file as it is now. The position is left alone."""
        self._last_snapshot = take_snapshot(self._config.filename)

    def snapshot(self) -> Snapshot:
        if self._last_snapshot is None:
            raise NoStateError()
        return self._last_snapshot

    def size(self) -> int:
        return self.snapshot().size

    def mtime(self) -> float:
        return self.snapshot().mtime

    def device_id(self) -> int:
        return self.snapshot().device_id

    def inode(self) -> int:
        return self.snapshot().inode

    def checkpoint(self) -> Checkpoint:
        snap = self.snapshot()
        return Checkpoint(
            filename=self._config.filename,
            device_id=snap.device_id,
            inode=snap.inode,
            position=self._last_offset,
        )

    # -------------------------
    # Reading
    # -------------------------
    def read_into(self, buf: Any) -> ReadResult:
        """
        Try to fill buf with new data from the log file.
        Errors are returned in the result, never raised, and leave the
        watcher exactly as it was.
        """
        path = self._config.filename
        try:
            fresh = take_snapshot(path)
        except StatError as e:
            self._sink.debug("read: stat %r failed: %s", path, e.cause)
            return ReadResult(0, Status.ERROR, e)

        self._sink.debug("read: snapshot %s", fresh)
        decision = classify(
            self._last_snapshot, fresh, self._last_offset, self._config.start_position
        )
        self._sink.debug(
            "read: %s -> %s, offset %d", decision.cause.value, decision.action.value, decision.offset
        )

        if not decision.should_read:
            # a truncation to zero still resets the position
            self._last_offset = decision.offset
            if decision.cause in _NEW_GENERATION:
                self._generation += 1
            return _END_OF_STREAM

        return self._pump(fresh, decision.offset, buf, decision.cause in _NEW_GENERATION)

    def _pump(self, fresh: Snapshot, offset: int, buf: Any, new_generation: bool = False) -> ReadResult:
        path = self._config.filename
        capacity = memoryview(buf).nbytes
        try:
            f = open(path, "rb", buffering=0)
        except OSError as e:
            self._sink.debug("read: open %r failed: %s", path, e)
            return ReadResult(0, Status.ERROR, OpenError(path, e))

        try:
            if offset > 0:
                self._sink.debug("read: %r seeking to %d", path, offset)
                try:
                    f.seek(offset, os.SEEK_SET)
                except (OSError, ValueError) as e:
                    raise SeekError(path, e) from e
            try:
                n = f.readinto(buf) or 0
            except OSError as e:
                raise ReadError(path, e) from e
        except WatcherError as e:
            self._sink.debug("read: %s", e)
            self._close_after_failure(f)
            return ReadResult(0, Status.ERROR, e)

        if n == 0 and capacity > 0:
            # end of file right at the offset
            self._sink.debug("read: %r nothing at offset %d", path, offset)
            self._close_after_failure(f)
            return _END_OF_STREAM

        self._sink.debug("read: %r read %d bytes at offset %d", path, n, offset)
        self._last_snapshot = fresh
        self._last_offset = offset + n
        if new_generation:
            self._generation += 1

        try:
            f.close()
        except OSError as e:
            return ReadResult(n, Status.ERROR, CloseError(path, e))
        return ReadResult(n, Status.OK)

    def _close_after_failure(self, f: io.FileIO) -> None:
        try:
            f.close()
        except OSError as e:
            self._sink.debug("read: close %r after failed read: %s", self._config.filename, e)

    # -------------------------
    # io.RawIOBase
    # -------------------------
    def readable(self) -> bool:
        return True

    def readinto(self, buf: Any) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed watcher.")
        result = self.read_into(buf)
        if result.error is not None:
            if result.n == 0:
                raise result.error
            self._sink.debug("read: keeping %d bytes despite: %s", result.n, result.error)
        return result.n
