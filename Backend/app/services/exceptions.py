"""Failures raised by the billing handlers.

Routers convert these into their endpoint's response format; the message is
safe to show to the caller.
"""


class BillingError(Exception):
    """Base exception for all billing errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingInput(BillingError):
    """A required field was absent from the request."""

    pass


class Unauthenticated(BillingError):
    """No credential, or the credential does not resolve to a user."""

    pass


class SubscriptionNotFound(BillingError):
    """No subscription matches the lookup."""

    pass


class InvalidState(BillingError):
    """The subscription's status does not allow the requested transition."""

    pass


class GatewayError(BillingError):
    """The payment provider answered with a non-success response."""

    pass


class GatewayUnavailable(GatewayError):
    """The payment provider could not be reached or refused verification."""

    pass


class StoreUpdateError(BillingError):
    """A local write failed after the provider already acted."""

    pass
