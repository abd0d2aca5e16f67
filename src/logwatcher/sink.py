from __future__ import annotations
from typing import Any, Protocol, TextIO


class LogSink(Protocol):
    """
    Where the watcher sends diagnostic events.
    Printf-style, so a logging.Logger can be passed as is.
    """
    def error(self, msg: str, *args: Any) -> None: ...

    def info(self, msg: str, *args: Any) -> None: ...

    def debug(self, msg: str, *args: Any) -> None: ...


class NullSink:
    """Discards everything. The default sink."""

    def error(self, msg: str, *args: Any) -> None:
        pass

    def info(self, msg: str, *args: Any) -> None:
        pass

    def debug(self, msg: str, *args: Any) -> None:
        pass


class WriterSink:
    """Writes "[LEVEL] message" lines to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def error(self, msg: str, *args: Any) -> None:
        self._write("ERROR", msg, args)

    def info(self, msg: str, *args: Any) -> None:
        self._write("INFO", msg, args)

    def debug(self, msg: str, *args: Any) -> None:
        self._write("DEBUG", msg, args)

    def _write(self, level: str, msg: str, args: tuple) -> None:
        text = msg % args if args else msg
        self.stream.write(f"[{level}] {text}\n")
