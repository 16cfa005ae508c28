"""Registration store operations.

Every state transition is a single conditional statement so that concurrent
requests for the same registration id cannot both win:

- paid: INSERT (primary key guards first writers), else
  UPDATE ... WHERE payment_status <> 'paid'
- checked in: UPDATE ... WHERE checked_in = false
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from kermesse.errors import DuplicateRegistration, NotFound
from kermesse.models.registration import PaymentStatus, Registration

logger = logging.getLogger(__name__)


class CheckInStatus(str, enum.Enum):
    SUCCESS = "success"
    ALREADY_CHECKED_IN = "already_checked_in"


@dataclass
class PaymentRecordResult:
    registration: Registration
    newly_paid: bool  # True only for the call that performed the transition


@dataclass
class CheckInResult:
    status: CheckInStatus
    registration: Registration


class RegistrationService:
    """Service for managing registration records"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_registration_by_id(
        self, registration_id: uuid.UUID
    ) -> Optional[Registration]:
        """Get a registration by ID"""
        stmt = select(Registration).where(Registration.id == registration_id)
        return self.db.exec(stmt).first()

    def get_registration_by_email(self, email: str) -> Optional[Registration]:
        """Get a registration by its (normalized) email"""
        stmt = select(Registration).where(Registration.email == email)
        return self.db.exec(stmt).first()

    def list_registrations(self) -> list[Registration]:
        """All registrations, newest first"""
        stmt = select(Registration).order_by(Registration.created_at.desc())
        return list(self.db.exec(stmt).all())

    def count_registrations(self) -> int:
        """Get the total number of registrations"""
        stmt = select(func.count()).select_from(Registration)
        return self.db.exec(stmt).one()

    def record_payment(self, registration: Registration) -> PaymentRecordResult:
        """
        Persist a registration as paid, at most once per registration id.

        Args:
            registration: Record rebuilt from checkout metadata; its payment
                status is forced to paid

        Returns:
            PaymentRecordResult; newly_paid is False when another call already
            recorded the payment

        Raises:
            DuplicateRegistration: If a different registration owns the email
        """
        existing = self.get_registration_by_id(registration.id)
        if existing is not None and existing.payment_status == PaymentStatus.PAID:
            return PaymentRecordResult(registration=existing, newly_paid=False)

        if existing is None:
            registration.payment_status = PaymentStatus.PAID
            try:
                self.db.add(registration)
                self.db.commit()
            except IntegrityError:
                # Lost an insert race, or the email belongs to someone else
                self.db.rollback()
                logger.info(
                    f"Insert conflict for registration {registration.id}, "
                    "falling back to conditional update"
                )
            else:
                self.db.refresh(registration)
                logger.info(f"Recorded paid registration {registration.id}")
                return PaymentRecordResult(registration=registration, newly_paid=True)

        registration_id = registration.id
        stmt = (
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.payment_status != PaymentStatus.PAID,
            )
            .values(payment_status=PaymentStatus.PAID)
        )
        result = self.db.exec(stmt)
        self.db.commit()

        current = self.get_registration_by_id(registration_id)
        if current is None:
            raise DuplicateRegistration()

        newly_paid = result.rowcount == 1
        if newly_paid:
            logger.info(f"Marked registration {registration_id} as paid")
        return PaymentRecordResult(registration=current, newly_paid=newly_paid)

    def check_in(
        self, registration_id: uuid.UUID, now: Optional[datetime] = None
    ) -> CheckInResult:
        """
        Mark a registration as checked in, at most once.

        Raises:
            NotFound: If no registration has this id
        """
        checked_in_at = now or datetime.now(timezone.utc)
        stmt = (
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.checked_in.is_(False),
            )
            .values(checked_in=True, checked_in_at=checked_in_at)
        )
        result = self.db.exec(stmt)
        self.db.commit()

        registration = self.get_registration_by_id(registration_id)
        if registration is None:
            raise NotFound()

        if result.rowcount == 1:
            logger.info(f"Checked in registration {registration_id}")
            return CheckInResult(CheckInStatus.SUCCESS, registration)

        logger.info(f"Repeat scan for registration {registration_id}")
        return CheckInResult(CheckInStatus.ALREADY_CHECKED_IN, registration)
