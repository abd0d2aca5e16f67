"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides
common fixtures and configuration for all test files.
"""
from __future__ import annotations
import io
import pytest
from pathlib import Path


@pytest.fixture
def log_path(tmp_path):
    """Return the path of a (not yet created) log file in a temp dir."""
    return tmp_path / "app.log"


@pytest.fixture
def write_lines():
    """
    Return a helper that appends formatted lines to a file.

    write_lines(path, start, count, template) writes template % i for
    i in start..start+count-1 and returns the number of bytes written.
    """
    def _write(path: Path, start: int, count: int, template: str = "%d log entry!") -> int:
        data = "".join((template % i) + "\n" for i in range(start, start + count))
        with open(path, "a", encoding="utf-8") as f:
            f.write(data)
        return len(data.encode("utf-8"))

    return _write


@pytest.fixture
def drain():
    """Return a helper that reads every available line from a buffered reader."""
    def _drain(reader: io.BufferedReader):
        return [line.decode("utf-8").rstrip("\n") for line in reader]

    return _drain
