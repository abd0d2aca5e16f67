from __future__ import annotations
from typing import Callable, Iterator, Optional, Tuple
import io
import logging
import time

from ..errors import NoStateError, OpenError, SeekError, StatError
from ..sink import LogSink
from ..snapshot import take_snapshot
from ..watcher import Watcher

logger = logging.getLogger(__name__)


def follow_file(
    path: str,
    *,
    start_position: int = 0,
    from_end: bool = False,
    poll_interval: float = 0.2,
    buffer_size: int = 8192,
    yield_heartbeat: bool = False,
    log_sink: Optional[LogSink] = None,
    on_drain: Optional[Callable[[Watcher, int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
    stop: Optional[Callable[[], bool]] = None,
) -> Iterator[Tuple[int, str]]:
    """
    Follow a text file like `tail -F`, on top of a Watcher.
    Yields (line_no, line) with line_no counting delivered lines from 1.

    - from_end=True starts at the current end of the file (new lines only),
      otherwise reading starts at start_position.
    - A trailing line without its newline is held back until it is complete.
    - A missing or unreadable file is waited for, not treated as fatal.
    - With yield_heartbeat, (0, "") is yielded after every idle poll.
    - on_drain(watcher, position) is called after each pass that reached the
      end of the file; position excludes any held-back partial line.
    """
    if from_end:
        try:
            start_position = take_snapshot(path).size
        except StatError:
            start_position = 0

    watcher = Watcher.from_options(path, start_position, log_sink)
    reader = io.BufferedReader(watcher, buffer_size=buffer_size)
    line_no = 0
    pending = b""
    pending_generation = watcher.generation

    try:
        while True:
            if stop is not None and stop():
                return

            try:
                while True:
                    chunk = reader.readline()
                    if not chunk:
                        break
                    if pending and watcher.generation != pending_generation:
                        # the rest of that line went with the old file
                        logger.debug("follow %s: dropping %d partial bytes", path, len(pending))
                        pending = b""
                    if not chunk.endswith(b"\n"):
                        if not pending:
                            pending_generation = watcher.generation
                        pending += chunk
                        break
                    line = pending + chunk
                    pending = b""
                    line_no += 1
                    yield line_no, line.decode("utf-8", errors="replace")
            except (StatError, OpenError) as e:
                # file temporarily missing (e.g. mid-rotation), keep waiting
                logger.debug("follow %s: %s", path, e)
            except SeekError as e:
                logger.debug("follow %s: %s, restarting from 0", path, e)
                pending = b""
                try:
                    watcher.set_last_position(0)
                except NoStateError:
                    # failed on the first read, only start_position can be at fault
                    reader.close()
                    watcher = Watcher.from_options(path, 0, log_sink)
                    reader = io.BufferedReader(watcher, buffer_size=buffer_size)
            else:
                if pending and watcher.generation != pending_generation:
                    pending = b""
                if on_drain is not None:
                    on_drain(watcher, max(0, watcher.last_position() - len(pending)))

            sleep(poll_interval)
            if yield_heartbeat:
                yield 0, ""
    finally:
        reader.close()
