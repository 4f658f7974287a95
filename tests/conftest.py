"""Pytest configuration and fixtures for the rental booking tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (tables created and catalog seeded)
- Service wiring for local and gateway settlement
- Settings and service singletons reset around every test
"""

import os
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set before any rental_core import reads settings
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-south-1")
os.environ["DYNAMODB_TABLE_PREFIX"] = "test-rental"
os.environ["ENVIRONMENT"] = "test"
os.environ["SETTLEMENT_MODE"] = "local"
os.environ["NOTIFICATIONS_ENABLED"] = "false"

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

TABLE_PREFIX = "test-rental"
GATEWAY_SECRET = "test_gateway_secret"
GATEWAY_KEY_ID = "rzp_test_key"

PROPERTIES = [
    {"property_id": "PROP-001", "monthly_rate": 20000, "security_deposit": 0, "title": "2BHK Indiranagar"},
    {"property_id": "PROP-002", "monthly_rate": 20000, "security_deposit": 5000, "title": "Studio Koramangala"},
]

ADD_ONS = [
    {"addon_id": "ADDON-CLEAN", "name": "Cleaning", "price": 1000, "billing_frequency": "monthly", "is_active": True},
    {"addon_id": "ADDON-MOVE", "name": "Move-in help", "price": 2500, "billing_frequency": "one-time", "is_active": True},
    {"addon_id": "ADDON-GYM", "name": "Gym pass", "price": 300, "billing_frequency": "weekly", "is_active": "true"},
    {"addon_id": "ADDON-PARKING", "name": "Parking", "price": 800, "billing_frequency": "monthly", "is_active": "false"},
]


# === Singleton Resets ===


@pytest.fixture(autouse=True)
def reset_state() -> Generator[None, None, None]:
    """Reset settings, cached services and the DynamoDB singleton.

    Ensures services used inside mock_aws are created inside the mock
    context rather than reused from an earlier test.
    """
    from rental_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === AWS Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "ap-south-1"


@pytest.fixture
def aws(aws_credentials: None) -> Generator[None, None, None]:
    with mock_aws():
        yield


def _table_definitions() -> list[dict[str, Any]]:
    return [
        {
            "TableName": f"{TABLE_PREFIX}-properties",
            "KeySchema": [{"AttributeName": "property_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "property_id", "AttributeType": "S"}],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-addons",
            "KeySchema": [{"AttributeName": "addon_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "addon_id", "AttributeType": "S"}],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-bookings",
            "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "booking_id", "AttributeType": "S"},
                {"AttributeName": "tenant_id", "AttributeType": "S"},
                {"AttributeName": "created_at", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "tenant_id-index",
                    "KeySchema": [
                        {"AttributeName": "tenant_id", "KeyType": "HASH"},
                        {"AttributeName": "created_at", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-payments",
            "KeySchema": [{"AttributeName": "payment_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "payment_id", "AttributeType": "S"},
                {"AttributeName": "order_id", "AttributeType": "S"},
                {"AttributeName": "booking_id", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "order_id-index",
                    "KeySchema": [{"AttributeName": "order_id", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                },
                {
                    "IndexName": "booking_id-index",
                    "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-booking-calendar",
            "KeySchema": [
                {"AttributeName": "property_id", "KeyType": "HASH"},
                {"AttributeName": "booking_id", "KeyType": "RANGE"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": "property_id", "AttributeType": "S"},
                {"AttributeName": "booking_id", "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
    ]


@pytest.fixture
def tables(aws: None) -> None:
    """Create all tables and seed the read-only catalog."""
    client = boto3.client("dynamodb")
    for definition in _table_definitions():
        client.create_table(**definition)

    resource = boto3.resource("dynamodb")
    properties = resource.Table(f"{TABLE_PREFIX}-properties")
    for item in PROPERTIES:
        properties.put_item(Item=item)
    addons = resource.Table(f"{TABLE_PREFIX}-addons")
    for item in ADD_ONS:
        addons.put_item(Item=item)


# === Service Fixtures ===


@pytest.fixture
def db(tables: None) -> Any:
    from rental_core.services.dynamodb import DynamoDBService

    return DynamoDBService()


@pytest.fixture
def catalog(db: Any) -> Any:
    from rental_core.services.catalog import CatalogService

    return CatalogService(db)


@pytest.fixture
def pricing(catalog: Any) -> Any:
    from rental_core.services.pricing import PricingService

    return PricingService(catalog)


@pytest.fixture
def availability(db: Any) -> Any:
    from rental_core.services.availability import AvailabilityService

    return AvailabilityService(db)


@pytest.fixture
def fake_gateway() -> MagicMock:
    """Gateway double returning one order id per booking."""
    gateway = MagicMock()
    gateway.key_id = GATEWAY_KEY_ID
    gateway.create_order.side_effect = lambda amount, currency, receipt: f"order_{receipt}"
    return gateway


@pytest.fixture
def verifier(db: Any) -> Any:
    from rental_core.services.payment_verifier import PaymentVerifier

    return PaymentVerifier(db, secret=GATEWAY_SECRET)


@pytest.fixture
def make_manager(
    db: Any, catalog: Any, pricing: Any, availability: Any
) -> Callable[..., Any]:
    """Factory for transaction managers sharing the same tables."""
    from rental_core.services.booking import BookingTransactionManager
    from rental_core.services.payment_gateway import LocalSettlement

    def _make(settlement: Any = None, verifier: Any = None) -> Any:
        return BookingTransactionManager(
            db=db,
            catalog=catalog,
            pricing=pricing,
            availability=availability,
            settlement=settlement or LocalSettlement(),
            verifier=verifier,
        )

    return _make


@pytest.fixture
def manager(make_manager: Callable[..., Any]) -> Any:
    """Manager with local settlement."""
    return make_manager()


@pytest.fixture
def gateway_manager(
    make_manager: Callable[..., Any], fake_gateway: MagicMock, verifier: Any
) -> Any:
    """Manager with gateway settlement and signature verification."""
    from rental_core.services.payment_gateway import GatewaySettlement

    return make_manager(settlement=GatewaySettlement(fake_gateway), verifier=verifier)


@pytest.fixture
def tenant() -> Any:
    from rental_core.models import Principal

    return Principal(tenant_id="tenant-a", email="tenant-a@example.com")


@pytest.fixture
def other_tenant() -> Any:
    from rental_core.models import Principal

    return Principal(tenant_id="tenant-b")


@pytest.fixture
def admin() -> Any:
    from rental_core.models import Principal, UserRole

    return Principal(tenant_id="admin-1", role=UserRole.ADMIN)
