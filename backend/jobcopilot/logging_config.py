"""
Logging setup shared by the API and the agents.
"""
import logging
from typing import Optional, Union

LOG_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the package logger with console and optional file output."""
    logger = logging.getLogger("jobcopilot")
    logger.setLevel(level)

    # Remove existing handlers so repeated calls don't duplicate output
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
