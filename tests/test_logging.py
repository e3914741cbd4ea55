"""Tests for logging setup."""

import io
import logging

import pytest

from lyryc.exceptions import ConfigError
from lyryc.utils.logging import NOISY_LOGGERS, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger("lyryc")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestSetupLogging:
    def test_console_level_and_format(self):
        stream = io.StringIO()
        setup_logging("WARNING", stream=stream)

        log = get_logger("lyryc.core.lrclib")
        log.info("quiet")
        log.warning("loud")

        assert stream.getvalue() == "WARNING: loud\n"

    def test_repeated_setup_does_not_duplicate(self):
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)
        logger = setup_logging("INFO", stream=stream)

        assert len(logger.handlers) == 1
        logger.info("once")
        assert stream.getvalue().count("once") == 1

    def test_log_file_gets_debug(self, temp_dir):
        stream = io.StringIO()
        log_file = temp_dir / "logs" / "lyryc.log"
        logger = setup_logging("WARNING", log_file=log_file, stream=stream)

        get_logger("lyryc.core.clock").debug("tick detail")
        for handler in logger.handlers:
            handler.flush()

        assert "tick detail" not in stream.getvalue()
        content = log_file.read_text(encoding="utf-8")
        assert "lyryc.core.clock - DEBUG - tick detail" in content

    def test_unknown_level(self):
        with pytest.raises(ConfigError):
            setup_logging("CHATTY")

    def test_noisy_loggers_pinned(self):
        setup_logging("DEBUG", stream=io.StringIO())
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
