"""
Payment Gateway - Checkout Abstraction
======================================

A checkout is created for an amount in minor units; the gateway returns a
handler that the payment page calls back with the gateway's payment id.
Card/UPI processing itself belongs to the hosted gateway.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from ... import ReviewUpliftError

logger = logging.getLogger(__name__)


class PaymentError(ReviewUpliftError):
    """Checkout could not be created or completed."""
    pass


@dataclass(frozen=True)
class PaymentReceipt:
    order_id: str
    payment_id: str
    amount_minor_units: int
    currency: str
    paid_at: str


@dataclass(frozen=True)
class Checkout:
    order_id: str
    amount_minor_units: int
    currency: str
    handler: Callable[[str], PaymentReceipt]


class PaymentGateway(ABC):
    """Implement this interface to plug in a hosted payment gateway."""

    @abstractmethod
    def create_checkout(self, amount_minor_units: int, currency: str) -> Checkout:
        ...


class SimulatedPaymentGateway(PaymentGateway):
    """Completes every checkout immediately. For trials and local development."""

    def create_checkout(self, amount_minor_units: int, currency: str) -> Checkout:
        if amount_minor_units <= 0:
            raise PaymentError("Amount must be positive")
        if not currency:
            raise PaymentError("Currency is required")

        order_id = f"order_{uuid.uuid4().hex[:14]}"
        logger.info(f"Checkout {order_id} created: {amount_minor_units} {currency}")

        def handler(payment_id: str) -> PaymentReceipt:
            if not payment_id:
                raise PaymentError("Missing payment id")
            receipt = PaymentReceipt(
                order_id=order_id,
                payment_id=payment_id,
                amount_minor_units=amount_minor_units,
                currency=currency,
                paid_at=datetime.now(timezone.utc).isoformat(),
            )
            logger.info(f"Checkout {order_id} paid with {payment_id}")
            return receipt

        return Checkout(order_id, amount_minor_units, currency, handler)
