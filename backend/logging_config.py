import logging
import os
import sys


def setup_logging(level: int | str | None = None) -> None:
    """Console logging with module names and line numbers; level defaults to $LOG_LEVEL or INFO."""
    if level is None:
        level = os.getenv('LOG_LEVEL', 'INFO')
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    log_format = '%(asctime)s [%(levelname)s] %(name)s %(funcName)s():%(lineno)d - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    root_logger.addHandler(handler)
