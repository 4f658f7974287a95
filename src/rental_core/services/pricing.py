"""Pricing service for monthly rent and add-on charges.

Total = monthly_rate x months + sum of add-on contributions, where a
monthly-billed add-on contributes price x months and any other add-on
(one-time or weekly) contributes its price once. Amounts are in paise.
"""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from rental_core.models import (
    AddOnCharge,
    AddOnService,
    BillingFrequency,
    BookingError,
    ErrorCode,
    PriceQuote,
)

if TYPE_CHECKING:
    from .catalog import CatalogService

logger = logging.getLogger(__name__)


class PricingService:
    """Service for booking price calculation."""

    def __init__(self, catalog: "CatalogService") -> None:
        """Initialize pricing service.

        Args:
            catalog: Read-only add-on lookup
        """
        self.catalog = catalog

    def resolve_add_ons(self, addon_ids: Iterable[str]) -> list[AddOnService]:
        """Look up add-on records by ID.

        IDs that do not resolve, or that name an inactive add-on, are
        skipped with a warning rather than failing the booking. Callers
        relying on an add-on being priced must check the returned list.

        Args:
            addon_ids: Requested add-on IDs (duplicates are priced once)

        Returns:
            Resolved add-ons in request order
        """
        resolved: list[AddOnService] = []
        seen: set[str] = set()
        for addon_id in addon_ids:
            if addon_id in seen:
                continue
            seen.add(addon_id)

            add_on = self.catalog.get_add_on(addon_id)
            if add_on is None:
                logger.warning("Skipping unknown add-on %s", addon_id)
                continue
            if not add_on.is_active:
                logger.warning("Skipping inactive add-on %s", addon_id)
                continue
            resolved.append(add_on)
        return resolved

    @staticmethod
    def add_on_contribution(add_on: AddOnService, duration_months: int) -> int:
        """Amount one add-on adds to a booking of the given length."""
        if add_on.billing_frequency == BillingFrequency.MONTHLY:
            return add_on.price * duration_months
        return add_on.price

    def quote(
        self,
        monthly_rate: int,
        duration_months: int,
        add_ons: Iterable[AddOnService] = (),
    ) -> PriceQuote:
        """Calculate an itemised price.

        Args:
            monthly_rate: Rent per month in paise
            duration_months: Booking length, must be >= 1
            add_ons: Resolved add-on records

        Returns:
            PriceQuote with base amount, add-on charges and total

        Raises:
            BookingError: INVALID_INPUT if duration_months is not a positive integer
        """
        if (
            isinstance(duration_months, bool)
            or not isinstance(duration_months, int)
            or duration_months < 1
        ):
            raise BookingError(
                ErrorCode.INVALID_INPUT,
                details={"duration_months": "must be a positive whole number of months"},
            )

        base_amount = monthly_rate * duration_months
        charges = [
            AddOnCharge(
                addon_id=a.addon_id,
                billing_frequency=a.billing_frequency,
                unit_price=a.price,
                amount=self.add_on_contribution(a, duration_months),
            )
            for a in add_ons
        ]

        return PriceQuote(
            monthly_rate=monthly_rate,
            duration_months=duration_months,
            base_amount=base_amount,
            add_on_charges=charges,
            total_amount=base_amount + sum(c.amount for c in charges),
        )

    def compute_price(
        self,
        monthly_rate: int,
        duration_months: int,
        add_ons: Iterable[AddOnService] = (),
    ) -> int:
        """Total charge for a booking in paise."""
        return self.quote(monthly_rate, duration_months, add_ons).total_amount
