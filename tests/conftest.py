from __future__ import annotations

import logging

import structlog


# Module loggers bind at import time, so route structlog through stdlib logging before any
# test module imports them. Keeps JSON log lines out of stdout for CLI output assertions.
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=False,
)
