"""
Logging configuration for the file checker.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_dir: Path, console: bool = True) -> Dict[str, logging.Logger]:
    """Attach daily file handlers and return the ``main`` and ``movement`` loggers.

    Calling this more than once is harmless; handlers are only added the first time.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    date_stamp = datetime.utcnow().strftime("%Y%m%d")
    formatter = logging.Formatter(LOG_FORMAT)

    base_logger = logging.getLogger("file_checker")
    if not base_logger.handlers:
        base_logger.setLevel(logging.INFO)
        if console:
            stream_handler = logging.StreamHandler()
            stream_handler.setLevel(logging.WARNING)
            stream_handler.setFormatter(formatter)
            base_logger.addHandler(stream_handler)

        file_handler = logging.FileHandler(log_dir / f"master_log_{date_stamp}.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        base_logger.addHandler(file_handler)

        error_handler = logging.FileHandler(log_dir / f"error_log_{date_stamp}.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        base_logger.addHandler(error_handler)

    movement_logger = logging.getLogger("file_checker.movement")
    if not movement_logger.handlers:
        movement_logger.setLevel(logging.INFO)
        move_handler = logging.FileHandler(log_dir / f"movement_log_{date_stamp}.log", encoding="utf-8")
        move_handler.setFormatter(formatter)
        movement_logger.addHandler(move_handler)
        movement_logger.propagate = False

    return {"main": base_logger, "movement": movement_logger}
