"""Structured logging configuration for xcc.

Provides JSON or text logging on stderr so that operator-facing console output
on stdout stays readable. Configure via XCC_LOG_LEVEL / XCC_LOG_FORMAT, which
AppSettings reads.
"""

from __future__ import annotations

import logging

from pythonjsonlogger import jsonlogger


def _build_json_formatter() -> logging.Formatter:
    fields = [
        "asctime",
        "levelname",
        "name",
        "message",
        "module",
        "funcName",
        "lineno",
        "process",
    ]
    fmt = " ".join([f"%({f})s" for f in fields])
    return jsonlogger.JsonFormatter(fmt=fmt)


def configure_logging(level: str = "WARNING", fmt: str = "text") -> None:
    level_upper = level.upper()
    log_level = getattr(logging, level_upper, logging.WARNING)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Remove default handlers to avoid duplicate logs
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    if fmt.lower() == "json":
        handler.setFormatter(_build_json_formatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
    root.addHandler(handler)

    # watchfiles reports every filesystem batch at INFO
    logging.getLogger("watchfiles").setLevel(max(log_level, logging.WARNING))
