import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .exceptions import ConfigError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_log_level(level_name: str) -> int:
    """Converts a level name such as 'debug' to the logging constant."""
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {level_name}")
    return level


def setup_logging(level_name: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Setup console logging, plus a rotating log file when one is configured."""
    numeric_level = resolve_log_level(level_name)

    # Console handler is always there, stdout stays free for the prompt
    console_handler = logging.StreamHandler(sys.stderr)
    handlers = [console_handler]

    file_error = None
    if log_file:
        log_file = os.path.expanduser(log_file)
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            )
            handlers.append(file_handler)
        except OSError as e:
            file_error = e

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger("dockercleaner")
    if file_error is not None:
        logger.warning(f"Could not open log file {log_file}, logging to console only: {file_error}")
    return logger
