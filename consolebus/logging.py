from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_FILE = "consolebus.log"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    file_name: str = DEFAULT_LOG_FILE,
) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    formatter = logging.Formatter(_FORMAT)

    if not any(getattr(h, "_consolebus", False) for h in root_logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        stream_handler._consolebus = True  # type: ignore[attr-defined]
        root_logger.addHandler(stream_handler)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / file_name
    for handler in root_logger.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_path.absolute():
            return

    file_handler = RotatingFileHandler(
        log_path, maxBytes=5 * 1024 * 1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **payload: Any) -> None:
    record: Dict[str, Any] = {"event": event, **payload}
    logger.log(level, json.dumps(record, default=repr))
