"""FastAPI dependency injection providers for core services.

Services are created lazily on first use and cached for the process.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── CatalogService
        │       └── PricingService
        ├── AvailabilityService
        ├── PaymentVerifier (needs the gateway secret)
        └── BookingTransactionManager
                └── SettlementStrategy (local or gateway, from settings)
    NotificationService (SES)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from rental_core.config import get_settings, reset_settings
from rental_core.services.availability import AvailabilityService
from rental_core.services.booking import BookingTransactionManager
from rental_core.services.catalog import CatalogService
from rental_core.services.dynamodb import get_dynamodb_service
from rental_core.services.notification_service import NotificationService
from rental_core.services.payment_gateway import build_settlement, resolve_gateway_secret
from rental_core.services.payment_verifier import PaymentVerifier
from rental_core.services.pricing import PricingService
from rental_core.services.ssm_service import get_ssm_service


@lru_cache
def get_catalog_service() -> CatalogService:
    return CatalogService(db=get_dynamodb_service())


@lru_cache
def get_pricing_service() -> PricingService:
    return PricingService(catalog=get_catalog_service())


@lru_cache
def get_availability_service() -> AvailabilityService:
    return AvailabilityService(db=get_dynamodb_service())


@lru_cache
def get_gateway_secret() -> str | None:
    """Signing secret for gateway payments, or None when not configured."""
    return resolve_gateway_secret(get_settings())


@lru_cache
def get_payment_verifier() -> PaymentVerifier:
    return PaymentVerifier(db=get_dynamodb_service(), secret=get_gateway_secret())


@lru_cache
def get_booking_manager() -> BookingTransactionManager:
    """Get cached BookingTransactionManager instance.

    Returns:
        Manager wired with the settlement strategy for the configured mode.
    """
    settings = get_settings()
    return BookingTransactionManager(
        db=get_dynamodb_service(),
        catalog=get_catalog_service(),
        pricing=get_pricing_service(),
        availability=get_availability_service(),
        settlement=build_settlement(settings, get_gateway_secret()),
        verifier=get_payment_verifier(),
        max_commit_attempts=settings.max_commit_attempts,
    )


@lru_cache
def get_notification_service() -> NotificationService:
    settings = get_settings()
    return NotificationService(
        sender=settings.notification_sender,
        enabled=settings.notifications_enabled,
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets settings and the underlying DynamoDB singleton.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    from rental_core.services.dynamodb import reset_dynamodb_service

    get_catalog_service.cache_clear()
    get_pricing_service.cache_clear()
    get_availability_service.cache_clear()
    get_gateway_secret.cache_clear()
    get_payment_verifier.cache_clear()
    get_booking_manager.cache_clear()
    get_notification_service.cache_clear()
    get_ssm_service.cache_clear()

    reset_dynamodb_service()
    reset_settings()
