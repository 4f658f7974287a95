"""Business logic services for the rental booking core."""

from .availability import AvailabilityService, CalendarEntry, CalendarSnapshot
from .booking import BookingTransactionManager
from .catalog import CatalogService
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .notification_service import NotificationService
from .payment_gateway import (
    GatewaySettlement,
    LocalSettlement,
    PaymentGateway,
    PaymentGatewayError,
    RazorpayGateway,
    SettlementStrategy,
    build_settlement,
    resolve_gateway_secret,
)
from .payment_verifier import PaymentVerifier, compute_signature
from .pricing import PricingService
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .state_machine import (
    TERMINAL_STATES,
    TRANSITIONS,
    BookingStateMachine,
    ExtensionPlan,
)

__all__ = [
    # Storage
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    # Core
    "AvailabilityService",
    "CalendarEntry",
    "CalendarSnapshot",
    "CatalogService",
    "PricingService",
    "BookingStateMachine",
    "ExtensionPlan",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "BookingTransactionManager",
    # Payments
    "GatewaySettlement",
    "LocalSettlement",
    "PaymentGateway",
    "PaymentGatewayError",
    "PaymentVerifier",
    "RazorpayGateway",
    "SettlementStrategy",
    "build_settlement",
    "compute_signature",
    "resolve_gateway_secret",
    # Notifications
    "NotificationService",
]
