"""Attach a stream handler to the `exo` logger tree from LoggingConfig."""
from __future__ import annotations

import json
import logging

from .schemas.observability import LoggingConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data = {
            "ts": record.created,
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def configure_logging(cfg: LoggingConfig | None = None) -> logging.Logger:
    """Configure the root `exo` logger; no-op if a handler already exists."""
    cfg = cfg or LoggingConfig()
    root = logging.getLogger("exo")
    root.setLevel(_LEVELS[cfg.level])
    if not root.handlers:
        h = logging.StreamHandler()
        if cfg.format == "json":
            h.setFormatter(_JsonFormatter())
        else:
            h.setFormatter(
                logging.Formatter("[EXO] %(levelname)s %(name)s: %(message)s")
            )
        root.addHandler(h)
    return root
