import logging
import os
from datetime import datetime
from typing import Optional

def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_dir: Optional[str] = None
) -> logging.Logger:
    """
    Set up a logger with detailed formatting.

    Args:
        name: Logger name (usually the package name)
        level: Optional logging level override
        log_dir: Optional directory for daily log files

    Returns:
        Configured logger instance
    """
    # Create logger
    logger = logging.getLogger(name)

    # Set level from argument, environment or default to INFO
    log_level = (
        level or
        os.getenv('LOG_LEVEL', 'INFO')
    ).upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Create formatter
    formatter = logging.Formatter(
        fmt=(
            '%(asctime)s | %(levelname)-8s | '
            '%(name)s:%(funcName)s:%(lineno)d | '
            '%(message)s'
        ),
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Add handlers if they haven't been added already
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(
                os.path.join(
                    log_dir,
                    f"{datetime.now().strftime('%Y-%m-%d')}.log"
                )
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
