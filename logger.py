# logger.py
import logging

from config import config

formatter = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

# Console handler (for local runs and automation logs)
console_handler = logging.StreamHandler()
console_handler.setLevel(config.LOG_LEVEL)
console_handler.setFormatter(formatter)

# File handler only when LOG_FILE is configured
file_handler = None
if config.LOG_FILE:
    file_handler = logging.FileHandler(config.LOG_FILE, encoding="utf-8")
    file_handler.setLevel(config.LOG_LEVEL)
    file_handler.setFormatter(formatter)


def get_logger(name: str = "workload_allocation") -> logging.Logger:
    """Return a configured logger instance."""
    logger = logging.getLogger(name)
    logger.setLevel(config.LOG_LEVEL)

    # Avoid duplicate handlers if called multiple times
    if not logger.handlers:
        logger.addHandler(console_handler)
        if file_handler is not None:
            logger.addHandler(file_handler)

    return logger
