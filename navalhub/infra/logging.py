"""Hub and agent logging setup."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from datetime import UTC, datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path

from navalhub.infra.app_data import resolve_logs_dir
from navalhub.infra.config import HubSettings
from navalhub.infra.json_codec import dumps_text

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_FILE_LISTENER: QueueListener | None = None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Where log records go: stderr always, a JSONL run log optionally."""

    level_name: str = "INFO"
    console_format: str = "text"  # text|json
    file_path: str | None = None


class JsonFormatter(logging.Formatter):
    """One JSON object per record, tagged with the writing process."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "pid": record.process,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return dumps_text(payload)


def configure_logging(config: LoggingConfig) -> None:
    """Log to stderr, and stream records to the run-log file through a queue."""
    global _FILE_LISTENER

    shutdown_logging()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, config.level_name.upper(), logging.INFO))

    console_handler = logging.StreamHandler()
    if config.console_format == "json":
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    root.addHandler(console_handler)

    if not config.file_path:
        return
    file_path = Path(config.file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(file_path, mode="a", encoding="utf-8", delay=True)
    file_handler.setFormatter(JsonFormatter())
    log_queue: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    root.addHandler(QueueHandler(log_queue))
    _FILE_LISTENER = QueueListener(log_queue, file_handler)
    _FILE_LISTENER.start()


def shutdown_logging() -> None:
    """Stop the run-log listener, flushing any pending records."""
    global _FILE_LISTENER

    if _FILE_LISTENER is not None:
        _FILE_LISTENER.stop()
        for handler in _FILE_LISTENER.handlers:
            handler.close()
        _FILE_LISTENER = None


def build_logging_config(settings: HubSettings, *, run_name: str = "navalhub") -> LoggingConfig:
    """Translate hub settings into a logging configuration."""
    file_path = None
    if settings.log_dir:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
        file_path = str(resolve_logs_dir(settings.log_dir) / f"{run_name}_run_{stamp}.jsonl")
    return LoggingConfig(
        level_name=settings.log_level,
        console_format=settings.log_format,
        file_path=file_path,
    )


def setup_logging(settings: HubSettings, *, run_name: str = "navalhub") -> LoggingConfig:
    """Configure process logging from hub settings and return the applied config."""
    config = build_logging_config(settings, run_name=run_name)
    configure_logging(config)
    if config.file_path:
        logging.getLogger(__name__).info("logging_file=%s", config.file_path)
    return config
