from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog


SERVICE_NAME = "travel-explorer"

_NOISY_LOGGERS = ("httpx", "httpcore")


def _add_service(service: str):
    def processor(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def _formatter(renderer: Any, pre_chain: list[Any]) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=pre_chain,
    )


def setup_logging(
    *,
    level: str | None = None,
    log_file: str | None = None,
    log_format: str | None = None,
    service: str = SERVICE_NAME,
) -> None:
    """
    Configure structlog on top of stdlib logging.

    - stderr only by default, so CLI stdout stays machine-readable
    - LOG_FORMAT=json (default) or console (human-readable, for terminals)
    - LOG_FILE adds a JSON lines file regardless of the console format
    Every event carries `service`.
    """
    lvl = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    file_path = log_file or os.getenv("LOG_FILE")
    fmt = (log_format or os.getenv("LOG_FORMAT", "json")).lower()
    if fmt not in ("json", "console"):
        raise ValueError(f"Unsupported LOG_FORMAT: {fmt}")

    root = logging.getLogger()
    root.setLevel(lvl)
    root.handlers.clear()

    shared = [
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.add_log_level,
        _add_service(service),
    ]
    console_renderer = (
        structlog.dev.ConsoleRenderer(colors=False) if fmt == "console" else structlog.processors.JSONRenderer()
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(lvl)
    console.setFormatter(_formatter(console_renderer, shared))
    root.addHandler(console)

    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(file_path, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(_formatter(structlog.processors.JSONRenderer(), shared))
        root.addHandler(fh)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, lvl, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(**kwargs: Any):
    # Lazy proxy: module-level loggers pick up setup_logging() config on first use.
    return structlog.get_logger(**kwargs)
