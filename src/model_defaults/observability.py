"""Structured logging for the model defaults library using structlog.

Library modules log through the standard ``logging`` module under the
``model_defaults`` logger. ``configure_logging`` attaches a structlog
``ProcessorFormatter`` to that logger so its records come out as JSON or
as colored console lines, as selected by ``MODEL_DEFAULTS_LOG_FORMAT``.

Usage:
    from model_defaults.observability import configure_logging
    configure_logging()
"""

from __future__ import annotations

import logging

import structlog

from model_defaults.settings import ModelDefaultsSettings, get_settings

LIBRARY_LOGGER = "model_defaults"

# Type alias for structlog processor
Processor = structlog.types.Processor


def build_formatter(settings: ModelDefaultsSettings) -> structlog.stdlib.ProcessorFormatter:
    """Build the formatter rendering stdlib log records through structlog.

    Args:
        settings: Settings selecting JSON or console rendering.

    Returns:
        A ProcessorFormatter ready to attach to a logging handler.
    """
    foreign_pre_chain: list[Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer: Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=foreign_pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def configure_logging(settings: ModelDefaultsSettings | None = None) -> logging.Logger:
    """Route the library logger through structlog.

    Replaces any handler previously installed by this function, so calling
    it again with different settings reconfigures rather than duplicates
    output.

    Args:
        settings: Optional settings instance. If not provided, settings are
            loaded from environment variables.

    Returns:
        The configured ``model_defaults`` logger.
    """
    if settings is None:
        settings = get_settings()

    handler = logging.StreamHandler()
    handler.set_name(LIBRARY_LOGGER)
    handler.setFormatter(build_formatter(settings))

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    for existing in list(library_logger.handlers):
        if existing.get_name() == LIBRARY_LOGGER:
            library_logger.removeHandler(existing)
    library_logger.addHandler(handler)
    library_logger.setLevel(settings.log_level)
    library_logger.propagate = False
    return library_logger
