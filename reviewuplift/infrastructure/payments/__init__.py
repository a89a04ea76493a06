from .gateway import PaymentGateway, SimulatedPaymentGateway, Checkout, PaymentReceipt, PaymentError

__all__ = ["PaymentGateway", "SimulatedPaymentGateway", "Checkout", "PaymentReceipt", "PaymentError"]
