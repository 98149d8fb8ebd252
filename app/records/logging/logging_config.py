import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..config.config import settings


def setup_logging(level: int = logging.INFO):
    """
    Configures application-wide logging.

    Logs go both to stdout (for development and container log collection) and
    to a size-rotated file under ``settings.LOG_DIR``. Store failures are logged
    here in full; clients only ever receive a generic message.
    """
    log_format = "%(asctime)s - [%(name)s] - %(levelname)s - %(message)s"

    logger = logging.getLogger()
    logger.setLevel(level)

    # Drop handlers installed by uvicorn and friends so one format is used everywhere.
    if logger.hasHandlers():
        logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(stdout_handler)

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(exist_ok=True)

    # app.log rolls over to app.log.1 ... app.log.5 at 5 MB
    file_handler = RotatingFileHandler(
        log_dir / "app.log",
        maxBytes=5*1024*1024,
        backupCount=5
    )
    file_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(file_handler)
