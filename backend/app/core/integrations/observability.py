"""
Observability hooks.
Events and exceptions go through the log pipeline with OTEL resource names
attached; the deployment ships them to OTEL_EXPORTER_OTLP_ENDPOINT.
"""

from typing import Any
from fastapi import Request
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


def _resource() -> dict:
    return {
        "service_name": settings.OTEL_SERVICE_NAME,
        "environment": settings.OTEL_ENVIRONMENT,
    }


def setup_observability() -> None:
    logger.info(
        "Setting up observability",
        extra={"otel_endpoint": settings.OTEL_EXPORTER_OTLP_ENDPOINT, **_resource()},
    )


def record_billing_event(event: str, **attributes: Any) -> None:
    """
    Emit a billing event, e.g. an invoice being generated.

    Args:
        event: Dotted event name such as "invoice.upfront_generated"
        **attributes: Event attributes; values are stringified
    """
    logger.info(
        f"Billing event: {event}",
        extra={
            "event": event,
            "attributes": {key: str(value) for key, value in attributes.items()},
            **_resource(),
        },
    )


def record_exception(exc: Exception, request: Request) -> None:
    """Report an exception that escaped a request handler."""
    logger.error(
        f"Exception recorded: {type(exc).__name__}",
        extra={
            "exception_message": str(exc),
            "path": request.url.path,
            "method": request.method,
            **_resource(),
        },
    )
