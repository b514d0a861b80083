"""
Tests for lib/logging_utils.py
"""

import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from lib.logging_utils import configureLogger, getLogLevelByStr, initLogging


@pytest.fixture
def rootLoggerState():
    """Restore the root logger after a test reconfigured it."""
    rootLogger = logging.getLogger()
    handlers = rootLogger.handlers[:]
    level = rootLogger.level
    yield rootLogger
    for handler in rootLogger.handlers[:]:
        if handler not in handlers:
            rootLogger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in rootLogger.handlers:
            rootLogger.addHandler(handler)
    rootLogger.setLevel(level)


@pytest.fixture
def testLogger():
    """A private logger, cleaned up afterwards."""
    localLogger = logging.getLogger("pltxt2htm.tests.logging")
    yield localLogger
    for handler in localLogger.handlers[:]:
        localLogger.removeHandler(handler)
        handler.close()
    localLogger.setLevel(logging.NOTSET)
    localLogger.propagate = True


class TestGetLogLevelByStr:
    """Level name lookup."""

    def testKnownLevels(self):
        assert getLogLevelByStr("debug") == logging.DEBUG
        assert getLogLevelByStr("WARNING") == logging.WARNING

    def testUnknownLevel(self):
        assert getLogLevelByStr("chatty") is None
        assert getLogLevelByStr("chatty", logging.INFO) == logging.INFO

    def testNonLevelAttribute(self):
        """Names of non-integer attributes of the logging module are not levels."""
        assert getLogLevelByStr("basicConfig") is None


class TestConfigureLogger:
    """Per-logger configuration."""

    def testLevelAndPropagate(self, testLogger):
        configureLogger(testLogger, {"level": "DEBUG", "propagate": False})

        assert testLogger.level == logging.DEBUG
        assert testLogger.propagate is False
        assert testLogger.handlers == []

    def testConsoleHandler(self, testLogger):
        configureLogger(testLogger, {"level": "INFO", "console": True, "console-level": "ERROR"})

        assert len(testLogger.handlers) == 1
        assert isinstance(testLogger.handlers[0], logging.StreamHandler)
        assert testLogger.handlers[0].level == logging.ERROR

    def testHandlersAreReplaced(self, testLogger):
        configureLogger(testLogger, {"console": True})
        configureLogger(testLogger, {"console": True})

        assert len(testLogger.handlers) == 1

    def testFileHandler(self, testLogger, tmp_path):
        logFile = tmp_path / "logs" / "pltxt2htm.log"
        configureLogger(testLogger, {"level": "INFO", "file": str(logFile), "format": "%(levelname)s:%(message)s"})

        testLogger.info("hello")
        for handler in testLogger.handlers:
            handler.flush()

        assert logFile.read_text(encoding="utf-8") == "INFO:hello\n"

    def testRotatingFileHandler(self, testLogger, tmp_path):
        configureLogger(testLogger, {"file": str(tmp_path / "rotating.log"), "rotate": True})

        assert isinstance(testLogger.handlers[0], TimedRotatingFileHandler)

    def testUnwritableLogFileIsReported(self, testLogger, tmp_path):
        """A file that cannot be opened leaves the logger without a file handler."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        configureLogger(testLogger, {"file": str(blocker / "sub" / "x.log")})

        assert testLogger.handlers == []


class TestInitLogging:
    """Root logger setup."""

    def testRootLevelDefaultsToInfo(self, rootLoggerState):
        initLogging({})

        assert rootLoggerState.level == logging.INFO

    def testPerLoggerOverrides(self, rootLoggerState):
        parserLogger = logging.getLogger("lib.pltext.parser")
        try:
            initLogging({"level": "WARNING", "logger": {"lib.pltext.parser": {"level": "DEBUG"}}})

            assert rootLoggerState.level == logging.WARNING
            assert parserLogger.level == logging.DEBUG
        finally:
            parserLogger.setLevel(logging.NOTSET)
