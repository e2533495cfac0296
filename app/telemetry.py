import logging

from opentelemetry import trace

from app.config import settings

logger = logging.getLogger(__name__)

_TRACER_NAME = "performance_engine"
_provider_installed = False


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return an OTel tracer.

    Without a configured TracerProvider the API hands out no-op spans, so
    report generation can open spans unconditionally.
    """
    return trace.get_tracer(name or _TRACER_NAME)


def _install_provider() -> None:
    global _provider_installed
    if _provider_installed:
        return

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(resource=Resource.create({"service.name": settings.otel_service_name}))
    endpoint = settings.otel_exporter_endpoint
    exporter = OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces") if endpoint else OTLPSpanExporter()
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _provider_installed = True


def setup_otel(app=None) -> None:
    """Configure OpenTelemetry tracing for the API or the Celery worker.

    Instruments FastAPI (when ``app`` is given), the SQLAlchemy engine the
    report fan-out reads through, Celery and stdlib logging. The
    instrumentation packages ship in the ``otel`` extra; a missing one is
    logged and skipped.
    """
    if not settings.otel_enabled:
        return
    _install_provider()

    # --- FastAPI ---
    if app is not None:
        try:
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

            FastAPIInstrumentor.instrument_app(app)
            logger.info("otel_instrumented target=fastapi")
        except ImportError:
            logger.warning("otel_instrumentation_missing target=fastapi", exc_info=True)

    # --- SQLAlchemy (cached engine singleton) ---
    try:
        from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

        from app.db import get_engine

        SQLAlchemyInstrumentor().instrument(engine=get_engine())
        logger.info("otel_instrumented target=sqlalchemy")
    except ImportError:
        logger.warning("otel_instrumentation_missing target=sqlalchemy", exc_info=True)

    # --- Celery ---
    try:
        from opentelemetry.instrumentation.celery import CeleryInstrumentor

        CeleryInstrumentor().instrument()
        logger.info("otel_instrumented target=celery")
    except ImportError:
        logger.warning("otel_instrumentation_missing target=celery", exc_info=True)

    # --- Logging (adds otelTraceID to records for the JSON formatter) ---
    try:
        from opentelemetry.instrumentation.logging import LoggingInstrumentor

        LoggingInstrumentor().instrument(set_logging_format=False)
        logger.info("otel_instrumented target=logging")
    except ImportError:
        logger.warning("otel_instrumentation_missing target=logging", exc_info=True)

    logger.info("otel_enabled service=%s", settings.otel_service_name)
