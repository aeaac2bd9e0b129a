"""
Structured build logging for CompRange runs.

Every record of a run, including those emitted by engine modules through
``logging.getLogger(__name__)``, lands in ``<logs_dir>/comprange.log`` as one
JSON object tagged with the run id reported in the build metadata.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

ENGINE_LOGGER = "comprange_engine"
LOG_FILE = "comprange.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 10
CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the run id."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self.run_id,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload.update(getattr(record, "fields", {}))
        return json.dumps(payload, ensure_ascii=False, default=str)


class ProductionLogger:
    """
    Run-scoped logger writing JSON to a rotating file and text to the console.

    Engine module loggers share the JSON file handler while the run is open,
    so library warnings (malformed job codes, missing FX rates) are correlated
    with the run that produced them. Call ``close()`` when the run ends.
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        log_level: str = "INFO",
        logs_dir: Path | str = "logs",
        capture_engine_logs: bool = True,
    ):
        self.run_id = run_id or f"{datetime.now():%Y%m%d_%H%M%S}-{uuid.uuid4().hex[:8]}"
        self.level = logging.getLevelName(log_level.upper())
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(f"comprange.{self.run_id}")
        self.logger.setLevel(self.level)
        self.logger.propagate = False

        file_handler = RotatingFileHandler(
            self.logs_dir / LOG_FILE, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS
        )
        file_handler.setFormatter(JSONFormatter(self.run_id))
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

        self._handlers: List[logging.Handler] = [file_handler, console_handler]
        for handler in self._handlers:
            handler.setLevel(self.level)
            self.logger.addHandler(handler)

        self._engine_logger = logging.getLogger(ENGINE_LOGGER) if capture_engine_logs else None
        if self._engine_logger is not None:
            self._engine_logger.setLevel(self.level)
            self._engine_logger.addHandler(file_handler)

    def log_event(self, level: str, message: str, **fields: Any) -> None:
        """Log ``message`` with ``fields`` merged into the JSON record."""
        self.logger.log(logging.getLevelName(level.upper()), message, extra={"fields": fields})

    def info(self, message: str, **fields: Any) -> None:
        self.log_event("INFO", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log_event("ERROR", message, **fields)

    def get_run_id(self) -> str:
        return self.run_id

    def close(self) -> None:
        """Detach and close this run's handlers."""
        for handler in self._handlers:
            if self._engine_logger is not None:
                self._engine_logger.removeHandler(handler)
            self.logger.removeHandler(handler)
            handler.close()


def get_logger(
    run_id: Optional[str] = None,
    log_level: str = "INFO",
    logs_dir: Path | str = "logs",
) -> ProductionLogger:
    """Create the logger for one build run."""
    return ProductionLogger(run_id=run_id, log_level=log_level, logs_dir=logs_dir)
