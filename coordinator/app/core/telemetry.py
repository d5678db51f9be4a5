"""Logging setup for processes that embed scope resolution.

Scope and filter code only talks to the OpenTelemetry API. The host process
owns the tracer provider and any exporter; with none installed, spans are
no-ops and log records carry zeroed ids.
"""

from __future__ import annotations

import logging

from opentelemetry import trace

from app.core.config import Settings, get_settings

_BASE_LOG_RECORD_FACTORY = logging.getLogRecordFactory()
_LOG_CORRELATION_INSTALLED = False
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
CORRELATED_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s trace_id=%(trace_id)s span_id=%(span_id)s %(message)s"


def configure_logging(settings: Settings | None = None, *, level: str | None = None) -> None:
    settings = settings or get_settings()
    log_format = LOG_FORMAT
    if settings.otel_log_correlation:
        _install_log_correlation()
        log_format = CORRELATED_LOG_FORMAT
    # no-op when the host already attached root handlers
    logging.basicConfig(level=(level or settings.log_level).upper(), format=log_format)


def _install_log_correlation() -> None:
    global _LOG_CORRELATION_INSTALLED
    if _LOG_CORRELATION_INSTALLED:
        return

    def record_factory(*args: object, **kwargs: object) -> logging.LogRecord:
        record = _BASE_LOG_RECORD_FACTORY(*args, **kwargs)
        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            record.trace_id = format(context.trace_id, "032x")
            record.span_id = format(context.span_id, "016x")
        else:
            record.trace_id = "0" * 32
            record.span_id = "0" * 16
        return record

    logging.setLogRecordFactory(record_factory)
    _LOG_CORRELATION_INSTALLED = True
