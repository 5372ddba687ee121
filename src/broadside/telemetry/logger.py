"""Logging helpers with optional OpenTelemetry export."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import TelemetryConfig

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s "
    "| trace_id=%(otelTraceID)s span_id=%(otelSpanID)s"
)

_OTLP_HANDLER: logging.Handler | None = None
_CONSOLE_HANDLER: logging.Handler | None = None


class _OtelContextFilter(logging.Filter):
    """Ensures trace/span placeholders exist even when no context is active."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        if not hasattr(record, "otelTraceID"):
            record.otelTraceID = "-"
        if not hasattr(record, "otelSpanID"):
            record.otelSpanID = "-"
        return True


def get_logger(name: str = "broadside") -> logging.Logger:
    return logging.getLogger(name)


def configure_console_logging(level: str = "WARNING") -> logging.Handler:
    """Attach one stderr handler to the package logger at the given level."""
    global _CONSOLE_HANDLER
    package_logger = logging.getLogger("broadside")
    package_logger.setLevel(level)
    if _CONSOLE_HANDLER is None:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(_OtelContextFilter())
        package_logger.addHandler(handler)
        _CONSOLE_HANDLER = handler
    _CONSOLE_HANDLER.setLevel(level)
    return _CONSOLE_HANDLER


def init_logging(config: TelemetryConfig) -> logging.Logger:
    """Forward package log records to the OTLP log exporter."""
    global _OTLP_HANDLER
    logger = get_logger(config.service_name)
    if _OTLP_HANDLER is not None:
        return logger

    from opentelemetry._logs import set_logger_provider
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.sdk.resources import Resource

    provider = LoggerProvider(resource=Resource.create(config.resource()))
    if config.otlp_logs_endpoint:
        exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    set_logger_provider(provider)

    handler = LoggingHandler(level=config.log_level, logger_provider=provider)
    handler.addFilter(_OtelContextFilter())
    logging.getLogger("broadside").addHandler(handler)
    _OTLP_HANDLER = handler
    return logger
