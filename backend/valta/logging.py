"""Opt-in logging setup for applications embedding Valta.

The library itself only emits through module-level loggers; nothing is
configured on import. `valta.main.lifespan` calls `configure_logging` on
startup.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from valta.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
LOG_FILE = "valta.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Supabase talks to storage over httpx; its per-request logs drown out sync logs.
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def configure_logging(settings: Optional[Settings] = None) -> Path:
    """Install console and rotating file handlers on the root logger.

    Returns the path of the log file.
    """
    settings = settings or default_settings
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    logs_dir = Path(settings.logs_dir) if settings.logs_dir else Path.cwd() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / LOG_FILE

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return log_file
