import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from common.config.settings import settings

# === File output path ===
BASE_LOG_DIR = settings.BASE_DIR / "logs"
LOG_FILE = BASE_LOG_DIR / f"travelshare_{datetime.now().strftime('%Y%m%d')}.log"

# === Colors for terminal logs ===
COLOR_MAP = {
    "DEBUG": "\033[94m",  # Blue
    "INFO": "\033[92m",  # Green
    "WARNING": "\033[93m",  # Yellow
    "ERROR": "\033[91m",  # Red
    "CRITICAL": "\033[95m",  # Magenta
    "ENDC": "\033[0m"
}

LOG_FORMAT = "[%(asctime)s] %(levelname)s | %(message)s | %(context)s"


def render_context(context: Optional[dict]) -> str:
    """``user_id=bob following=True``; None values are dropped."""
    if not context:
        return "-"
    return " ".join(f"{key}={value}" for key, value in context.items() if value is not None) or "-"


class ContextFormatter(logging.Formatter):
    def format(self, record):
        record.context = render_context(getattr(record, "ctx", None))
        return super().format(record)


class ColorFormatter(ContextFormatter):
    def format(self, record):
        levelname = record.levelname
        record.levelname = f"{COLOR_MAP.get(levelname, '')}{levelname}{COLOR_MAP['ENDC']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    return logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO


# === Create logger ===
logger = logging.getLogger("travelshare")
logger.setLevel(_level())
logger.propagate = False

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColorFormatter(LOG_FORMAT) if sys.stdout.isatty() else ContextFormatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        BASE_LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
        file_handler.setFormatter(ContextFormatter(LOG_FORMAT))
        logger.addHandler(file_handler)


# === Public Logging Functions ===
def log_debug(message: str, extra: Optional[dict] = None):
    logger.debug(message, extra={"ctx": extra})

def log_info(message: str, extra: Optional[dict] = None):
    logger.info(message, extra={"ctx": extra})

def log_warning(message: str, extra: Optional[dict] = None):
    logger.warning(message, extra={"ctx": extra})

def log_error(message: str, extra: Optional[dict] = None, exc_info: bool = False):
    logger.error(message, extra={"ctx": extra}, exc_info=exc_info)
