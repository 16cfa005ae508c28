"""SQLModel Registration model"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class PaymentStatus(str, enum.Enum):
    """Payment state of a stored registration.

    The checkout flow only ever inserts PAID rows. PENDING is the column
    default for rows an operator adds by hand (comps, imports); confirming a
    paid session for such an id promotes it to PAID.
    """

    PENDING = "pending"
    PAID = "paid"


class Registration(SQLModel, table=True):
    """One attendee's registration and its payment/check-in state.

    The id is minted before checkout and doubles as the QR ticket payload.
    """

    __tablename__ = "registrations"
    __table_args__ = (
        CheckConstraint(
            "checked_in = (checked_in_at IS NOT NULL)",
            name="registrations_checked_in_consistent",
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    contact_detail: str
    email: str = Field(unique=True, index=True)
    tier: Optional[str] = None
    amount_paid: Optional[int] = None  # Minor currency units
    currency: Optional[str] = None
    checkout_session_id: Optional[str] = Field(default=None, unique=True)
    payment_status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        sa_column=Column(
            SAEnum(
                PaymentStatus,
                name="payment_status",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            server_default=PaymentStatus.PENDING.value,
        ),
    )
    checked_in: bool = Field(default=False)
    checked_in_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
