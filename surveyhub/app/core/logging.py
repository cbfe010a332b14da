"""Setting up a file logger for recording service events.

Returns a lazily initialized logger that appends to `{logging_dir}/{filename}`.
"""
import os
from logging import FileHandler, Formatter, getLogger, INFO
from surveyhub.app.core.config import settings


def get_logs_writer_logger(logging_dir=None, filename=None):
    logger = getLogger("surveyhub")

    if logger.handlers:
        return logger

    logging_dir = logging_dir or settings.LOG_PATH
    filename = filename or settings.LOG_FILE
    os.makedirs(logging_dir, exist_ok=True)
    log_path = os.path.join(logging_dir, filename)

    logger.setLevel(INFO)

    handler = FileHandler(log_path, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)

    return logger
