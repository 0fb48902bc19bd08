from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Optional

import structlog

from aggregarr.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Loggers that keep their own level regardless of config.log_level.
QUIET_LOGGERS: dict[str, str] = {"httpx": "WARNING", "httpcore": "WARNING"}

_UVICORN_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.error", "uvicorn.access")

_listener: Optional[QueueListener] = None


def _strip_uvicorn_color(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.pop("color_message", None)
    return event_dict


def _stamp_record_time(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Use the stdlib record's creation time for foreign log lines.

    Formatting happens later on the listener thread, so a TimeStamper there
    would report the wrong moment.
    """
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer()
        if config.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            _strip_uvicorn_color,
            structlog.contextvars.merge_contextvars,
            _stamp_record_time,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """dictConfig handed to uvicorn.run().

    Every uvicorn logger writes through the structlog formatter at
    config.log_level; QUIET_LOGGERS keep their fixed level.
    """
    handler = {
        "class": "logging.StreamHandler",
        "formatter": "structlog",
        "stream": "ext://sys.stderr",
    }
    loggers: dict[str, Any] = {
        name: {"handlers": ["default"], "level": config.log_level, "propagate": False}
        for name in _UVICORN_LOGGERS
    }
    loggers.update({name: {"level": level} for name, level in QUIET_LOGGERS.items()})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"structlog": {"()": lambda: _formatter(config)}},
        "handlers": {"default": handler},
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": config.log_level},
    }


class _LevelRange(logging.Filter):
    def __init__(self, low: int = logging.NOTSET, high: int = logging.CRITICAL) -> None:
        super().__init__()
        self.low = low
        self.high = high

    def filter(self, record: logging.LogRecord) -> bool:
        return self.low <= record.levelno <= self.high


class _DictSafeQueueHandler(QueueHandler):
    """QueueHandler.prepare() flattens record.msg to a string; structlog
    needs the event dict to survive the trip to the listener thread."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        return copy.copy(record)


def _stop_listener() -> None:
    global _listener
    listener, _listener = _listener, None
    if listener is not None:
        listener.stop()


def _route_through_queue(config: AppConfig) -> None:
    """Emit from a background thread; warnings and below go to stdout,
    errors to stderr."""
    global _listener
    _stop_listener()

    formatter = _formatter(config)
    outputs: list[logging.Handler] = []
    for stream, level_filter in (
        (sys.stdout, _LevelRange(high=logging.WARNING)),
        (sys.stderr, _LevelRange(low=logging.ERROR)),
    ):
        handler = logging.StreamHandler(stream=stream)
        handler.setFormatter(formatter)
        handler.addFilter(level_filter)
        outputs.append(handler)

    records: queue.Queue[logging.LogRecord] = queue.Queue()
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_DictSafeQueueHandler(records))
    root.setLevel(config.log_level)

    for name in list(logging.root.manager.loggerDict):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        quiet = QUIET_LOGGERS.get(name.split(".", 1)[0])
        logger.setLevel(quiet or config.log_level)

    _listener = QueueListener(records, *outputs, respect_handler_level=True)
    _listener.start()
    atexit.register(_stop_listener)


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """Configure structlog on top of stdlib logging.

    Returns the dictConfig for uvicorn; records themselves are written by a
    QueueListener so the event loop never waits on a stream.
    """
    structlog.configure(
        processors=[
            _strip_uvicorn_color,
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    dict_config = build_logging_config(config)
    logging.config.dictConfig(dict_config)
    _route_through_queue(config)

    log.info(
        "logging_configured", log_format=config.log_format, log_level=config.log_level
    )
    return dict_config
