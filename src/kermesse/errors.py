"""Error taxonomy for the registration lifecycle.

Every error carries a user-facing ``message`` that is safe to return to
clients. Internal details belong in the server log, never in ``message``.
"""

from typing import Optional


class RegistrationError(Exception):
    """Base class for lifecycle errors"""

    default_message = "Registration error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistrationError):
    """Missing or invalid registrant input (4xx, no side effects)"""

    default_message = "All fields are required."


class PaymentNotCompleted(RegistrationError):
    """Checkout session exists but has not been paid"""

    default_message = "Payment not completed."


class Unauthorized(RegistrationError):
    default_message = "Unauthorized."


class NotFound(RegistrationError):
    default_message = "Registration not found."


class DuplicateRegistration(RegistrationError):
    """A registration already exists for this email"""

    default_message = "This email is already registered."


class DependencyFailure(RegistrationError):
    """Store, payment gateway or email provider call failed"""

    default_message = "A service dependency failed. Please try again later."


class PaymentGatewayError(DependencyFailure):
    default_message = "Payment provider error."


class TicketDeliveryFailed(DependencyFailure):
    """Ticket email failed after the registration was confirmed as paid.

    The registration stays valid; the ticket must be resent out of band.
    """

    default_message = (
        "Your payment is confirmed but we could not email your ticket. "
        "Our team will resend it shortly."
    )

    def __init__(self, registration_id, message: Optional[str] = None):
        self.registration_id = registration_id
        super().__init__(message)


class ForeignCheckoutSession(DependencyFailure):
    """Paid checkout session that carries no registration metadata.

    Sessions created outside this service on the same payment account land
    here; retrying can never turn them into a registration.
    """

    default_message = "Payment session does not belong to a registration."
