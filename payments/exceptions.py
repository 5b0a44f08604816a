"""
Payment processing exceptions
"""


class PaymentGatewayError(Exception):
    """Base exception for payment gateway errors"""
    pass


class AuthenticityError(PaymentGatewayError):
    """
    Raised when a notification cannot be proven to come from the gateway.

    The message is the short plain-text body returned to the gateway.
    """

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class NotFoundError(PaymentGatewayError):
    """No order or subscription matches the notification"""
    pass


class ConcurrencyConflict(PaymentGatewayError):
    """A guarded update modified no rows because the record changed underneath it"""
    pass


class TransientStoreError(PaymentGatewayError):
    """Persistence failed while a transition was being applied"""
    pass
