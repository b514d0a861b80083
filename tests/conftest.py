"""
Pytest configuration and common fixtures for pltxt2htm tests.

All fixtures follow camelCase naming convention.
"""

import logging
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# ============================================================================
# Filesystem Fixtures
# ============================================================================


@pytest.fixture
def tempDir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path: Directory removed after the test
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def samplePlText() -> str:
    """
    Provide a pl-text document using every tag family.

    Returns:
        str: pl-text source
    """
    return (
        "<h1>Title</h1>"
        "<b>bold</b> <i>italic</i> <del>gone</del>\n"
        "<color=red>red</color> <size=20>big</size> <a>note</a>\n"
        "<user=42>Alice</user> <experiment=e1>exp</experiment> <discussion=d1>talk</discussion><br><hr>"
    )


@pytest.fixture
def writeFile(tempDir):
    """
    Write bytes or text to a file in the temp directory.

    Returns:
        Callable[[str, Union[str, bytes]], Path]
    """

    def _write(name, content):
        path = tempDir / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


# ============================================================================
# Logging
# ============================================================================


@pytest.fixture(autouse=True)
def restoreRootLogger() -> Generator[None, None, None]:
    """The CLI reconfigures the root logger, put it back after every test."""
    rootLogger = logging.getLogger()
    handlers = rootLogger.handlers[:]
    level = rootLogger.level
    yield
    for handler in rootLogger.handlers[:]:
        if handler not in handlers:
            rootLogger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in rootLogger.handlers:
            rootLogger.addHandler(handler)
    rootLogger.setLevel(level)
