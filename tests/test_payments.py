import pytest

from reviewuplift.infrastructure.payments import PaymentError, SimulatedPaymentGateway


def test_checkout_handler_returns_receipt():
    checkout = SimulatedPaymentGateway().create_checkout(4900, "USD")
    receipt = checkout.handler("gpay_123")

    assert receipt.order_id == checkout.order_id
    assert receipt.amount_minor_units == 4900
    assert receipt.currency == "USD"
    assert receipt.payment_id == "gpay_123"


@pytest.mark.parametrize("amount,currency", [(0, "USD"), (-100, "USD"), (4900, "")])
def test_invalid_checkout_is_refused(amount, currency):
    with pytest.raises(PaymentError):
        SimulatedPaymentGateway().create_checkout(amount, currency)


def test_handler_needs_payment_id():
    checkout = SimulatedPaymentGateway().create_checkout(9900, "USD")
    with pytest.raises(PaymentError):
        checkout.handler("")
