from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING, Literal, Protocol, cast

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from structlog.types import Processor

type BoundLogger = structlog.stdlib.BoundLogger
type LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"]


class LoggingConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LOG_",
        extra="forbid",
        frozen=True,
    )

    level: LogLevel = Field(default="INFO")
    json_output: bool = Field(default=False)
    service_name: str = Field(default="redisfailover")
    library_log_levels: dict[str, LogLevel] = Field(default_factory=dict)


class RendererStrategy(Protocol):
    def renderer(self) -> Processor: ...


class JsonRendererStrategy:
    def renderer(self) -> Processor:
        return structlog.processors.JSONRenderer(sort_keys=True)


class ConsoleRendererStrategy:
    def renderer(self) -> Processor:
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _shared_processors(json_output: bool) -> list[Processor]:
    timestamper = (
        structlog.processors.TimeStamper(fmt="iso", utc=True)
        if json_output
        else structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _stream_handler(config: LoggingConfig) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(config: LoggingConfig | None = None) -> BoundLogger:
    """Install structlog processors and a stdout handler on the root logger.

    Parameters
    ----------
    config : LoggingConfig | None
        Logging settings. Read from ``LOG_*`` environment variables when omitted.

    Returns
    -------
    BoundLogger
        A logger bound to the configured pipeline.
    """
    actual = config if config is not None else _get_default_config()
    strategy: RendererStrategy = JsonRendererStrategy() if actual.json_output else ConsoleRendererStrategy()

    structlog.configure(
        processors=[*_shared_processors(actual.json_output), strategy.renderer()],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [_stream_handler(actual)]
    root.setLevel(actual.level)

    for lib_name, lib_level in actual.library_log_levels.items():
        logging.getLogger(lib_name).setLevel(lib_level)

    structlog.contextvars.bind_contextvars(service=actual.service_name)

    return cast(BoundLogger, structlog.get_logger())


@lru_cache(maxsize=1)
def _get_default_config() -> LoggingConfig:
    return LoggingConfig()


def get_logger(name: str | None = None) -> BoundLogger:
    return cast(BoundLogger, structlog.get_logger(name))


def bind_context(**kwargs: str | float | bool | None) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
