"""Database models for Kermesse Tickets"""

from kermesse.models.registration import PaymentStatus, Registration

__all__ = [
    "PaymentStatus",
    "Registration",
]
