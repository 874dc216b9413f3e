import logging
from logging.handlers import RotatingFileHandler

from sentinelrelay.util import logger as relay_logger
from sentinelrelay.util.logger import (
    ColorFormatter,
    PromptToolkitHandler,
    get_log_filepath,
    get_logger,
    handle_exception,
    setup_logger,
    should_use_color,
)


class DummyStream:
    def __init__(self, tty=True):
        self.tty = tty

    def write(self, msg):
        pass

    def isatty(self):
        return self.tty


def test_get_logger_has_console_and_rotating_file_handlers():
    logger = get_logger("test_relay_logger")

    assert any(isinstance(h, PromptToolkitHandler) for h in logger.handlers)
    assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
    assert logger.propagate is False


def test_setup_logger_idempotent():
    logger1 = setup_logger("test_relay_logger_idem")
    logger2 = setup_logger("test_relay_logger_idem")

    assert logger1 is logger2
    assert len(logger1.handlers) == 2


def test_color_formatter_applies_color():
    formatter = ColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("test", logging.WARNING, "", 0, "slow response", None, None)

    formatted = formatter.format(record)

    assert formatted.startswith("\033[33m")
    assert "slow response" in formatted


def test_should_use_color(monkeypatch):
    monkeypatch.setattr("sys.stderr", DummyStream(tty=True))
    assert should_use_color() is True
    monkeypatch.setattr("sys.stderr", DummyStream(tty=False))
    assert should_use_color() is False


def test_log_filepath_is_shared_for_session():
    path = get_log_filepath()

    assert path == get_log_filepath()
    assert path.parent == relay_logger.LOGS_DIR
    assert path.suffix == ".log"


def test_noisy_loggers_are_silenced():
    assert logging.getLogger("urllib3").level == logging.ERROR
    assert logging.getLogger("discord").propagate is False


def test_handle_exception_logs_error(caplog):
    class DummyException(Exception):
        pass

    with caplog.at_level(logging.ERROR):
        try:
            raise DummyException("fail")
        except DummyException as exc:
            handle_exception(DummyException, exc, exc.__traceback__)

    assert any("Uncaught exception" in r.message for r in caplog.records)
