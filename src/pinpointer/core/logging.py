"""Logging configuration."""
import logging
import sys
from pathlib import Path
from .config import settings


def setup_logging():
    """Configure application logging."""

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_dir / "pinpointer.log")
    file_handler.setFormatter(formatter)

    logger = logging.getLogger("pinpointer")
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    # Re-running setup (tests, reload) must not stack handlers
    if not logger.handlers:
        logger.addHandler(console_handler)
        logger.addHandler(file_handler)

    return logger


def job_tag(job_id: str) -> str:
    """Short prefix used to correlate log lines of a single audit."""
    return f"[Audit {job_id[:8]}]"


logger = setup_logging()
