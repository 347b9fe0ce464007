"""Main entry point for Pinpointer."""

import os
import uvicorn

from pinpointer.core.config import settings
from pinpointer.core.logging import logger


def main():
    """Run the Pinpointer API server."""
    logger.info("Starting Pinpointer API server")

    # Dev mode: enable auto-reload (set DEV_MODE=1 or UVICORN_RELOAD=1)
    dev_mode = os.environ.get("DEV_MODE", "0") == "1" or os.environ.get("UVICORN_RELOAD", "0") == "1"
    port = int(os.environ.get("PORT", "8000"))

    # Jobs live in process memory, so the server always runs a single worker
    if dev_mode:
        logger.info("Running in DEV MODE with auto-reload enabled")
        uvicorn.run(
            "pinpointer.api.main:app",
            host="0.0.0.0",
            port=port,
            reload=True,
            reload_dirs=["src"],  # Only watch source code
            reload_excludes=["*.log", "*.pyc", "__pycache__", "storage/*", "logs/*", ".git/*"],
            log_level=settings.LOG_LEVEL.lower(),
        )
    else:
        uvicorn.run(
            "pinpointer.api.main:app",
            host="0.0.0.0",
            port=port,
            reload=False,
            workers=1,
            log_level=settings.LOG_LEVEL.lower(),
        )


if __name__ == "__main__":
    main()
