import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from core.config import LOG_DIR, LOG_LEVEL, LOG_TO_FILE

logger = logging.getLogger("agenda")
logger.setLevel(LOG_LEVEL)

# Streamlit re-imports modules on rerun; avoid stacking handlers
if logger.handlers:
    logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
))
logger.addHandler(console_handler)

if LOG_TO_FILE:
    os.makedirs(LOG_DIR, exist_ok=True)
    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, "agenda.log"),
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(file_handler)

logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """Get the app logger, or a child of it when a name is given."""
    if name:
        return logger.getChild(name)
    return logger
