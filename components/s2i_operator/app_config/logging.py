"""Logging setup shared by the controller and the webhook server.

Modules get their logger with

``` python
from s2i_operator.app_config import logging

logger = logging.getLogger(__name__)
```

which places it below the `s2i_operator` logger, so one level applies to
all of the operator code. `configure_logging()` has to run once on startup.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from logging import Logger, LoggerAdapter
from typing import Any, Final

from s2i_operator.errors.errors import ConfigurationError

APP_LOGGER: Final[str] = "s2i_operator"

_PLAIN_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d) - %(message)s"
_DATE_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%f%z"
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


def getLogger(name: str) -> Logger:
    """A logger named `name` below the operator logger."""
    if name == APP_LOGGER or name.startswith(APP_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER}.{name}")


class _RequestLogAdapter(LoggerAdapter):
    """Prefixes messages with the id of the request being served."""

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        """Add the request id to the message and to the record."""
        extra = dict(self.extra or {})
        kwargs["extra"] = {**extra, **kwargs.get("extra", {})}
        return f"[{extra.get('request_id')}] {msg}", kwargs


def with_request_id(logger: Logger, request_id: str) -> LoggerAdapter:
    """Wrap `logger` so that every message names the request `request_id`."""
    return _RequestLogAdapter(logger, {"request_id": request_id})


class _PlainFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(fmt=_PLAIN_FORMAT, datefmt=_DATE_FORMAT)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format with microseconds, which `time.strftime` cannot do."""
        return datetime.fromtimestamp(record.created).astimezone().strftime(datefmt or _DATE_FORMAT)


class _JsonFormatter(_PlainFormatter):
    """One json object per record, extra attributes become top level keys."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the record as json."""
        doc: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "location": f"{record.filename}:{record.lineno}",
            "message": record.getMessage(),
        }
        doc.update({key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS})
        if record.exc_info:
            doc["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(doc, default=str)


class LogFormatStyle(StrEnum):
    """Output format of the log handler."""

    plain = "plain"
    json = "json"

    def to_formatter(self) -> logging.Formatter:
        """The formatter producing this style."""
        if self is LogFormatStyle.json:
            return _JsonFormatter()
        return _PlainFormatter()


def _level(name: str) -> int:
    level = logging.getLevelNamesMapping().get(name.strip().upper())
    if level is None:
        raise ConfigurationError(message=f"Logging config problem: level name '{name}' is not known.")
    return level


def _override_levels_from_env(prefix: str) -> dict[int, set[str]]:
    """Read `<LEVEL>_LOGGING=logger.a,logger.b` variables."""
    res: dict[int, set[str]] = {}
    for level_name, level in logging.getLevelNamesMapping().items():
        value = os.environ.get(f"{prefix}{level_name}_LOGGING", "")
        names = {n.strip() for n in value.split(",") if n.strip()}
        if names:
            res.setdefault(level, set()).update(names)
    return res


@dataclass
class Config:
    """Levels and format of the operator logs."""

    format_style: LogFormatStyle = LogFormatStyle.plain
    root_level: int = logging.WARNING
    app_level: int = logging.INFO
    override_levels: dict[int, set[str]] = field(default_factory=dict)

    def update_override_levels(self, others: dict[int, set[str]]) -> None:
        """Merge more per-logger levels into this config."""
        for level, names in others.items():
            self.override_levels.setdefault(level, set()).update(names)

    @classmethod
    def from_env(cls, prefix: str = "") -> Config:
        """Load the config from `LOG_ROOT_LEVEL`, `LOG_APP_LEVEL`, `LOG_FORMAT_STYLE` and `<LEVEL>_LOGGING`."""
        style = os.environ.get(f"{prefix}LOG_FORMAT_STYLE", "plain").lower()
        return cls(
            format_style=LogFormatStyle.json if style == "json" else LogFormatStyle.plain,
            root_level=_level(os.environ.get(f"{prefix}LOG_ROOT_LEVEL", "WARNING")),
            app_level=_level(os.environ.get(f"{prefix}LOG_APP_LEVEL", "INFO")),
            override_levels=_override_levels_from_env(prefix),
        )


def configure_logging(cfg: Config | None = None) -> None:
    """Install a single handler on the root logger and apply the configured levels.

    Handlers added by libraries are removed and every logger falls back to the root
    level, except the operator loggers, sanic, and the loggers named in `override_levels`.
    """
    cfg = cfg if cfg is not None else Config.from_env()
    loggers = [lg for lg in logging.Logger.manager.loggerDict.values() if isinstance(lg, Logger)]
    for lg in [*loggers, logging.root]:
        lg.setLevel(logging.NOTSET)
        for handler in list(lg.handlers):
            lg.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(cfg.format_style.to_formatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(cfg.root_level)
    logging.getLogger(APP_LOGGER).setLevel(cfg.app_level)
    logging.getLogger("sanic").setLevel(logging.INFO)

    logger = getLogger(__name__)
    for level, names in cfg.override_levels.items():
        for name in names:
            logging.getLogger(name).setLevel(level)
            logger.debug(f"Logger {name} set to {logging.getLevelName(level)}")
