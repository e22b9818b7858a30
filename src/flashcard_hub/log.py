"""Logging setup for the CLI."""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_MAX_SIZE = 5 * 1024 * 1024
LOG_MAX_FILES = 3

_configured = False


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> logging.Logger:
    """Attach a rich console handler, plus a rotating file handler if asked.

    Calling it again only adjusts the level.
    """
    global _configured
    logger = logging.getLogger("flashcard_hub")
    logger.setLevel(level.upper())
    if _configured:
        return logger

    console_handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=LOG_MAX_SIZE, backupCount=LOG_MAX_FILES)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(file_handler)

    logging.captureWarnings(True)
    _configured = True
    return logger
