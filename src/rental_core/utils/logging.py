"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for booking and payment operation logging

Usage:
    from rental_core.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Creating booking", extra={"property_id": "PROP-123"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def configure_logging(level: int = logging.INFO) -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; an existing structured handler is reused.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler.formatter, StructuredFormatter):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def _emit(
    logger: logging.Logger,
    prefix: str,
    context: dict[str, Any],
    error: str | None,
) -> None:
    msg_parts = [prefix]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_booking_operation(
    logger: logging.Logger,
    operation: str,
    *,
    booking_id: str | None = None,
    property_id: str | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a booking lifecycle operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "create_booking", "extend_booking")
        booking_id: Booking ID if available
        property_id: Property ID if relevant
        status: Booking status after the operation
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if booking_id:
        context["booking_id"] = booking_id
    if property_id:
        context["property_id"] = property_id
    if status:
        context["status"] = status
    if error:
        context["error"] = error

    context.update(extra)
    _emit(logger, f"Booking operation: {operation}", context, error)


def log_payment_operation(
    logger: logging.Logger,
    operation: str,
    *,
    payment_id: str | None = None,
    booking_id: str | None = None,
    order_id: str | None = None,
    amount: int | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a payment operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "settle_local", "verify_signature")
        payment_id: Payment ID if available
        booking_id: Booking ID if available
        order_id: Gateway order ID if available
        amount: Amount in paise if relevant
        status: Payment status
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if payment_id:
        context["payment_id"] = payment_id
    if booking_id:
        context["booking_id"] = booking_id
    if order_id:
        context["order_id"] = order_id
    if amount is not None:
        context["amount"] = amount
    if status:
        context["status"] = status
    if error:
        context["error"] = error

    context.update(extra)
    _emit(logger, f"Payment operation: {operation}", context, error)
