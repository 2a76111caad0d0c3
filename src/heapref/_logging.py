import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "heapref"


def set_log_level(level: int) -> None:
    """Route the package's log records to stderr at the given level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
        )
        logger.addHandler(handler)
