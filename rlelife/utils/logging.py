# utils/logging.py
import logging
import os
from typing import Optional

_logger = None

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


def get_logger(log_dir: Optional[str] = None, name: str = "rlelife", level: int = logging.INFO):
    """
    Get a global logger instance.
    If log_dir is provided, a file handler is attached.
    """
    global _logger
    if _logger is not None:
        return _logger

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # console handler
    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(ch)

    # file handler (only if log_dir provided)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(os.path.join(log_dir, f"{name}.log"))
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(fh)

    _logger = logger
    return _logger


def reset_logger():
    """Detach and close the handlers of the cached logger so the next get_logger() rebuilds it."""
    global _logger
    if _logger is None:
        return
    for handler in list(_logger.handlers):
        _logger.removeHandler(handler)
        handler.close()
    _logger = None
