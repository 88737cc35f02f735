"""Root logging setup.

Modules log through ``logging.getLogger(__name__)``; this only decides how
records are rendered. ``json`` renders every stdlib record through
structlog's JSON renderer, ``text`` keeps the plain basicConfig format.
"""

import logging
import sys

import structlog

from .config import LoggingSettings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )


def configure_logging(settings: LoggingSettings) -> None:
    """Install the root handler. Safe to call more than once."""
    root = logging.getLogger()

    if settings.format == "text":
        logging.basicConfig(level=settings.level, format=TEXT_FORMAT, force=True)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_json_formatter())
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.level)
