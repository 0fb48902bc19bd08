"""Tests for the structlog/stdlib logging wiring."""

from __future__ import annotations

import logging

import structlog

from aggregarr.infrastructure.config import AppConfig
from aggregarr.infrastructure.logging.setup import (
    QUIET_LOGGERS,
    _LevelRange,
    _formatter,
    build_logging_config,
)


def _record(level: int) -> logging.LogRecord:
    return logging.LogRecord("t", level, __file__, 1, "msg", None, None)


class TestBuildLoggingConfig:
    def test_uvicorn_loggers_follow_config_level(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            assert cfg["loggers"][name]["level"] == "DEBUG"
        assert cfg["root"]["level"] == "DEBUG"

    def test_httpx_stays_quiet(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        assert cfg["loggers"]["httpx"]["level"] == "WARNING"
        assert QUIET_LOGGERS["httpx"] == "WARNING"

    def test_handlers_use_structlog_formatter(self) -> None:
        cfg = build_logging_config(AppConfig())
        assert cfg["handlers"]["default"]["formatter"] == "structlog"
        formatter = cfg["formatters"]["structlog"]["()"]()
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)


class TestFormatter:
    def test_json_renderer_in_prod(self) -> None:
        formatter = _formatter(AppConfig(environment="prod"))
        assert any(
            isinstance(p, structlog.processors.JSONRenderer)
            for p in formatter.processors
        )

    def test_console_renderer_in_dev(self) -> None:
        formatter = _formatter(AppConfig(environment="dev"))
        assert any(
            isinstance(p, structlog.dev.ConsoleRenderer) for p in formatter.processors
        )


class TestLevelRange:
    def test_upper_bound(self) -> None:
        f = _LevelRange(high=logging.WARNING)
        assert f.filter(_record(logging.WARNING))
        assert not f.filter(_record(logging.ERROR))

    def test_lower_bound(self) -> None:
        f = _LevelRange(low=logging.ERROR)
        assert f.filter(_record(logging.CRITICAL))
        assert not f.filter(_record(logging.INFO))
