# backend/app/services/payment_service.py
"""
Payment gateway used by the booking lifecycle.

The booking core only needs to charge and refund. ``StripePaymentGateway``
does that with PaymentIntents and Refunds; ``MockPaymentGateway`` stands in
when Stripe is not configured (local development, CI).
"""

from dataclasses import dataclass
from decimal import Decimal
import logging
import secrets
from typing import Optional, Protocol, Union

import stripe

from ..core.config import settings

logger = logging.getLogger(__name__)

Amount = Union[int, float, Decimal]

MIN_PAYMENT_METHOD_LENGTH = 10


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    payment_id: Optional[str] = None
    refund_id: Optional[str] = None
    error: Optional[str] = None


class PaymentGateway(Protocol):
    def charge(self, amount: Amount, currency: str, method_ref: str, *, description: str = "") -> PaymentResult:
        ...

    def refund(self, payment_id: str, amount: Optional[Amount] = None) -> PaymentResult:
        ...


def to_minor_units(amount: Amount) -> int:
    """Convert a major-unit amount (rupees) to minor units (paise)."""
    return int((Decimal(str(amount)) * 100).to_integral_value())


class StripePaymentGateway:
    """Charges and refunds through Stripe PaymentIntents."""

    def __init__(self, api_key: str):
        stripe.api_key = api_key

    def charge(self, amount: Amount, currency: str, method_ref: str, *, description: str = "") -> PaymentResult:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency.lower(),
                payment_method=method_ref,
                confirm=True,
                description=description or None,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe charge failed: {str(e)}")
            return PaymentResult(success=False, error=getattr(e, "user_message", None) or str(e))

        if intent.status != "succeeded":
            return PaymentResult(success=False, payment_id=intent.id, error=f"Payment {intent.status}")
        return PaymentResult(success=True, payment_id=intent.id)

    def refund(self, payment_id: str, amount: Optional[Amount] = None) -> PaymentResult:
        kwargs = {"payment_intent": payment_id}
        if amount is not None:
            kwargs["amount"] = to_minor_units(amount)
        try:
            refund = stripe.Refund.create(**kwargs)
        except stripe.StripeError as e:
            logger.error(f"Stripe refund failed for {payment_id}: {str(e)}")
            return PaymentResult(success=False, payment_id=payment_id, error=str(e))
        return PaymentResult(success=True, payment_id=payment_id, refund_id=refund.id)


class MockPaymentGateway:
    """
    Local gateway for development and tests.

    Rejects payment method references shorter than 10 characters and
    non-positive amounts; everything else succeeds.
    """

    def charge(self, amount: Amount, currency: str, method_ref: str, *, description: str = "") -> PaymentResult:
        if not method_ref or len(method_ref) < MIN_PAYMENT_METHOD_LENGTH:
            return PaymentResult(success=False, error="Invalid payment method")
        if Decimal(str(amount)) <= 0:
            return PaymentResult(success=False, error="Invalid payment amount")
        payment_id = f"pay_{secrets.token_hex(8)}"
        logger.info(f"Mock charge {payment_id}: {amount} {currency}")
        return PaymentResult(success=True, payment_id=payment_id)

    def refund(self, payment_id: str, amount: Optional[Amount] = None) -> PaymentResult:
        if not payment_id:
            return PaymentResult(success=False, error="Missing payment id")
        refund_id = f"ref_{secrets.token_hex(8)}"
        logger.info(f"Mock refund {refund_id} for {payment_id}")
        return PaymentResult(success=True, payment_id=payment_id, refund_id=refund_id)


def build_payment_gateway() -> PaymentGateway:
    """Stripe when a secret key is configured, the mock gateway otherwise."""
    if settings.stripe_enabled and settings.stripe_secret_key is not None:
        return StripePaymentGateway(settings.stripe_secret_key.get_secret_value())
    logger.info("Stripe not configured; using mock payment gateway")
    return MockPaymentGateway()
