"""Logging setup for Kermesse Tickets.

Our own records go to stdout below WARNING and to stderr from WARNING up,
so ``TICKET UNDELIVERED`` alerts and webhook failures land on the stream
that hosting providers surface as errors. Payment and email SDK chatter is
held at ``PROVIDER_LOG_LEVEL`` so a busy checkout day does not bury them.
"""

import logging
import sys
from typing import Optional

from kermesse.config import config

# Loggers owned by the Stripe/Mailgun SDKs and the HTTP stacks under them
PROVIDER_LOGGERS = ("stripe", "mailgun", "urllib3", "requests", "httpx")

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


class BelowWarningFilter(logging.Filter):
    def filter(self, record):
        return record.levelno < logging.WARNING


def _level(name: Optional[str], fallback: int) -> int:
    return getattr(logging, (name or "").upper(), fallback)


def setup_logging(
    log_level: Optional[str] = None, provider_log_level: Optional[str] = None
) -> None:
    """
    Install the stdout/stderr handler pair on the root logger.

    Args:
        log_level: Overrides ``LOG_LEVEL`` from config
        provider_log_level: Overrides ``PROVIDER_LOG_LEVEL`` from config
    """
    level = _level(log_level or config.get("log_level"), logging.INFO)
    provider_level = _level(
        provider_log_level or config.get("provider_log_level"), logging.WARNING
    )

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(BelowWarningFilter())
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    # Never let a provider be chattier than our own level
    for name in PROVIDER_LOGGERS:
        logging.getLogger(name).setLevel(max(level, provider_level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
