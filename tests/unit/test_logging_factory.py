"""Tests for flowline.utils.logging_factory module."""

import logging

import pytest

from flowline.utils.logging_factory import TASK_LOGGER_NAME, LoggingFactory, get_logger


@pytest.fixture(autouse=True)
def reset_factory():
    """Start and finish every test with an uninitialized factory."""
    LoggingFactory.reset()
    root = logging.getLogger()
    level = root.level
    yield
    LoggingFactory.reset()
    root.setLevel(level)


class TestLoggingFactoryInitialize:
    """Tests for LoggingFactory.initialize() method."""

    def test_initialize_with_log_dir_creates_file_handler(self, tmp_path):
        log_dir = tmp_path / "nested" / "logs"
        LoggingFactory.initialize(log_dir=log_dir)

        assert LoggingFactory._initialized is True
        assert LoggingFactory._log_dir == log_dir
        assert (log_dir / "flowline.log").exists()
        assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_initialize_without_log_dir_is_console_only(self):
        LoggingFactory.initialize()

        assert LoggingFactory._log_dir is None
        assert len(LoggingFactory._handlers) == 1
        assert not isinstance(LoggingFactory._handlers[0], logging.FileHandler)

    def test_initialize_custom_level(self):
        LoggingFactory.initialize(level=logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger(TASK_LOGGER_NAME).level == logging.DEBUG

    def test_initialize_custom_format(self, tmp_path):
        LoggingFactory.initialize(log_dir=tmp_path, format_string="%(levelname)s|%(message)s")

        get_logger("flowline.test").warning("formatted")
        for handler in LoggingFactory._handlers:
            handler.flush()

        assert "WARNING|formatted" in (tmp_path / "flowline.log").read_text()

    def test_initialize_idempotent(self, tmp_path):
        LoggingFactory.initialize(log_dir=tmp_path / "one")
        handlers = len(logging.getLogger().handlers)

        LoggingFactory.initialize(log_dir=tmp_path / "two")

        assert LoggingFactory._log_dir == tmp_path / "one"
        assert len(logging.getLogger().handlers) == handlers
        assert not (tmp_path / "two").exists()

    def test_reset_removes_installed_handlers(self):
        LoggingFactory.initialize()
        installed = list(LoggingFactory._handlers)

        LoggingFactory.reset()

        assert LoggingFactory._initialized is False
        assert all(h not in logging.getLogger().handlers for h in installed)


class TestLoggingFactoryGetLogger:
    """Tests for LoggingFactory.get_logger() method."""

    def test_get_logger_auto_initializes(self):
        assert LoggingFactory._initialized is False
        logger = LoggingFactory.get_logger("flowline.module")

        assert LoggingFactory._initialized is True
        assert logger.name == "flowline.module"

    def test_convenience_function_matches_factory(self):
        assert get_logger("flowline.same") is LoggingFactory.get_logger("flowline.same")


class TestLoggingFactoryLevels:
    """Tests for set_level() and configure_verbose()."""

    def test_set_level_changes_logger_level(self):
        LoggingFactory.set_level("flowline.levels", logging.ERROR)
        assert logging.getLogger("flowline.levels").level == logging.ERROR

    def test_configure_verbose_toggles_debug(self):
        LoggingFactory.configure_verbose(verbose=True)
        assert logging.getLogger("flowline").level == logging.DEBUG
        assert logging.getLogger(TASK_LOGGER_NAME).level == logging.DEBUG

        LoggingFactory.configure_verbose(verbose=False)
        assert logging.getLogger("flowline").level == logging.INFO
        assert logging.getLogger(TASK_LOGGER_NAME).level == logging.INFO
