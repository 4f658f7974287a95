"""Payment settlement for new bookings.

A deployment settles payments one way only:

- LocalSettlement marks the payment completed immediately with a
  synthetic ``local_<hex>`` transaction id.
- GatewaySettlement opens an order with the payment gateway and leaves
  the payment pending until the client's confirmation is verified.

The Razorpay SDK is imported when the first order is created, so local
deployments and tests never need gateway credentials.
"""

import datetime as dt
import logging
import uuid
from typing import Any, Protocol

from rental_core.config import Settings
from rental_core.models import (
    Payment,
    PaymentMethod,
    PaymentOrder,
    PaymentProvider,
    PaymentStatus,
    SettlementMode,
)

from .ssm_service import SSMService, SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the payment gateway rejects or fails a request."""


class PaymentGateway(Protocol):
    """Order creation capability of an external payment gateway."""

    key_id: str

    def create_order(self, amount: int, currency: str, receipt: str) -> str:
        """Open an order and return its id."""
        ...


class RazorpayGateway:
    """Razorpay orders API.

    Usage:
        gateway = RazorpayGateway(key_id, key_secret)
        order_id = gateway.create_order(6000000, "INR", "BKG-1A2B3C4D5E6F")
    """

    def __init__(self, key_id: str, key_secret: str) -> None:
        self.key_id = key_id
        self._key_secret = key_secret
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            import razorpay

            self._client = razorpay.Client(auth=(self.key_id, self._key_secret))
        return self._client

    def create_order(self, amount: int, currency: str, receipt: str) -> str:
        """Create a gateway order.

        Args:
            amount: Amount in paise
            currency: ISO currency code
            receipt: Our reference, shown in the gateway dashboard

        Returns:
            Gateway order id

        Raises:
            PaymentGatewayError: If the gateway call fails
        """
        try:
            order = self._get_client().order.create(
                {"amount": amount, "currency": currency, "receipt": receipt}
            )
        except Exception as e:
            # The SDK raises its own error types plus requests exceptions
            raise PaymentGatewayError(f"Failed to create order: {e}") from e

        order_id = order.get("id")
        if not order_id:
            raise PaymentGatewayError("Gateway response did not include an order id")
        return str(order_id)


class SettlementStrategy(Protocol):
    """Builds the payment record for a booking about to be committed."""

    provider: PaymentProvider

    def settle(
        self,
        *,
        booking_id: str,
        tenant_id: str,
        amount: int,
        now: dt.datetime,
    ) -> Payment: ...

    def payment_order(self, payment: Payment) -> PaymentOrder: ...


def _generate_payment_id() -> str:
    return f"PAY-{uuid.uuid4().hex[:12].upper()}"


class LocalSettlement:
    """Payments complete in-process."""

    provider = PaymentProvider.LOCAL

    def __init__(self, currency: str = "INR") -> None:
        self.currency = currency

    def settle(
        self,
        *,
        booking_id: str,
        tenant_id: str,
        amount: int,
        now: dt.datetime,
    ) -> Payment:
        return Payment(
            payment_id=_generate_payment_id(),
            booking_id=booking_id,
            tenant_id=tenant_id,
            amount=amount,
            currency=self.currency,
            method=PaymentMethod.LOCAL,
            status=PaymentStatus.COMPLETED,
            provider=PaymentProvider.LOCAL,
            external_transaction_id=f"local_{uuid.uuid4().hex}",
            created_at=now,
            completed_at=now,
        )

    def payment_order(self, payment: Payment) -> PaymentOrder:
        return PaymentOrder(
            provider=PaymentProvider.LOCAL,
            amount=payment.amount,
            currency=payment.currency,
            paid=True,
        )


class GatewaySettlement:
    """Payments are collected by the gateway and confirmed later."""

    provider = PaymentProvider.RAZORPAY

    def __init__(self, gateway: PaymentGateway, currency: str = "INR") -> None:
        self.gateway = gateway
        self.currency = currency

    def settle(
        self,
        *,
        booking_id: str,
        tenant_id: str,
        amount: int,
        now: dt.datetime,
    ) -> Payment:
        """Open a gateway order and return a pending payment for it.

        Raises:
            PaymentGatewayError: If the order cannot be created
        """
        order_id = self.gateway.create_order(amount, self.currency, booking_id)
        logger.info("Opened gateway order %s for booking %s", order_id, booking_id)

        return Payment(
            payment_id=_generate_payment_id(),
            booking_id=booking_id,
            tenant_id=tenant_id,
            amount=amount,
            currency=self.currency,
            method=PaymentMethod.CARD,
            status=PaymentStatus.PENDING,
            provider=PaymentProvider.RAZORPAY,
            order_id=order_id,
            created_at=now,
        )

    def payment_order(self, payment: Payment) -> PaymentOrder:
        return PaymentOrder(
            provider=PaymentProvider.RAZORPAY,
            amount=payment.amount,
            currency=payment.currency,
            paid=False,
            order_id=payment.order_id,
            key=self.gateway.key_id,
        )


def resolve_gateway_secret(settings: Settings, ssm: SSMService | None = None) -> str | None:
    """Find the gateway signing secret.

    RAZORPAY_KEY_SECRET wins; otherwise gateway deployments read it from
    SSM. Local deployments without the variable have no secret.

    Raises:
        PaymentGatewayError: If gateway mode is configured and SSM has no secret
    """
    if settings.razorpay_key_secret:
        return settings.razorpay_key_secret
    if settings.settlement_mode != SettlementMode.GATEWAY:
        return None

    ssm = ssm or get_ssm_service()
    try:
        return ssm.get_parameter(settings.gateway_secret_parameter)
    except SSMServiceError as e:
        raise PaymentGatewayError(f"Gateway secret unavailable: {e}") from e


def build_settlement(
    settings: Settings,
    secret: str | None = None,
) -> SettlementStrategy:
    """Create the settlement strategy for the configured mode."""
    if settings.settlement_mode == SettlementMode.LOCAL:
        return LocalSettlement(currency=settings.payment_currency)

    if not secret:
        raise PaymentGatewayError("Gateway settlement requires a key secret")
    gateway = RazorpayGateway(settings.razorpay_key_id or "", secret)
    return GatewaySettlement(gateway, currency=settings.payment_currency)
