"""Logging configuration for the analysis engine."""

import logging
from typing import Optional, TextIO

import structlog

from config.settings import AnalysisSettings, settings as default_settings


def setup_logging(app_settings: Optional[AnalysisSettings] = None,
                  stream: Optional[TextIO] = None) -> None:
    """Setup stdlib logging and, for JSON output, structlog processors.

    In JSON mode the root handler renders every record, stdlib or structlog,
    as one JSON object per line.
    """
    app_settings = app_settings or default_settings
    level = getattr(logging, app_settings.log_level.upper(), logging.INFO)

    if app_settings.log_format != "json":
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            stream=stream
        )
        return

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    handler = logging.StreamHandler(stream)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer()
        ],
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper
        ]
    ))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
