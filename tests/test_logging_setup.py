import logging

from rich.logging import RichHandler

from botdash.logging_setup import setup_logging


def test_file_logging(tmp_path):
    log_file = tmp_path / "botdash.log"
    setup_logging("debug", str(log_file))
    logging.getLogger("botdash.test").debug("hello from test")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello from test" in log_file.read_text()
    assert logging.getLogger().level == logging.DEBUG


def test_console_logging_uses_rich():
    setup_logging("warning")
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert any(isinstance(h, RichHandler) for h in root.handlers)
