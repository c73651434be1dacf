import logging
from logging.handlers import RotatingFileHandler

from guibundler.logging_utils import LOGGER_NAME, log_file_path, setup_logging


def test_setup_logging_writes_file(tmp_path):
    logger = setup_logging(level=logging.INFO, log_dir=tmp_path)
    logging.getLogger("guibundler.invoker").info("Running fake build")
    for handler in logger.handlers:
        handler.flush()

    contents = log_file_path(tmp_path).read_text(encoding="utf-8")
    assert "Running fake build" in contents
    assert "guibundler.invoker" in contents


def test_setup_logging_is_idempotent(tmp_path):
    setup_logging(level=logging.WARNING, log_dir=tmp_path)
    logger = setup_logging(level=logging.DEBUG, log_dir=tmp_path)

    assert logger is logging.getLogger(LOGGER_NAME)
    assert sum(isinstance(h, RotatingFileHandler) for h in logger.handlers) == 1
    consoles = [h for h in logger.handlers if not isinstance(h, RotatingFileHandler)]
    assert len(consoles) == 1
    assert consoles[0].level == logging.DEBUG
