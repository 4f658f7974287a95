"""Request middleware."""

from rental_api.middleware.correlation import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
