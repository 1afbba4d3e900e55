"""OpenTelemetry configuration for the personnel trash service."""

import os
import sys

from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import start_http_server

from .logging_config import get_logger

logger = get_logger(__name__)

_METRICS_PORTS = (8080, 8081)


def _start_metrics_server() -> int | None:
    for port in _METRICS_PORTS:
        try:
            start_http_server(port)
        except OSError:
            continue
        return port
    return None


def setup_telemetry(app) -> bool:
    """Enable tracing and Prometheus metrics when ENABLE_TELEMETRY is set.

    Returns True when instrumentation was installed.
    """
    if not os.getenv("ENABLE_TELEMETRY"):
        return False

    if "pytest" in sys.modules or os.getenv("TESTING"):
        logger.info("Skipping OpenTelemetry setup during tests")
        return False

    try:
        prometheus_reader = PrometheusMetricReader()
        metrics.set_meter_provider(MeterProvider(metric_readers=[prometheus_reader]))

        metrics_port = _start_metrics_server()
        if metrics_port is None:
            logger.warning("No free port for the Prometheus metrics server")
        else:
            logger.info("Prometheus metrics server started", port=metrics_port)

        tracer_provider = TracerProvider()
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(tracer_provider)

        FastAPIInstrumentor.instrument_app(app)
        SQLAlchemyInstrumentor().instrument()
    except Exception as e:
        # Telemetry must never keep the service from starting
        logger.error("Failed to setup OpenTelemetry", error=str(e))
        return False

    logger.info("OpenTelemetry tracing and metrics setup completed")
    return True
