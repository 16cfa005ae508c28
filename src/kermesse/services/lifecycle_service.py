"""Registration lifecycle: checkout, payment confirmation, ticketing and check-in.

State machine for one registration id:

    minted (checkout metadata only) -> paid (persisted) -> checked in

Nothing is persisted until the payment gateway reports the session as paid;
the checkout metadata is the only copy of the registrant until then.
"""

import asyncio
import hmac
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from kermesse.backends.payment_client import PaymentClient
from kermesse.errors import (
    DuplicateRegistration,
    ForeignCheckoutSession,
    NotFound,
    PaymentNotCompleted,
    TicketDeliveryFailed,
    Unauthorized,
    ValidationError,
)
from kermesse.models.registration import PaymentStatus, Registration
from kermesse.services.email_service import EmailService
from kermesse.services.pricing_service import PriceTable
from kermesse.services.registration_service import CheckInResult, RegistrationService
from kermesse.services.ticket_service import encode_ticket

logger = logging.getLogger(__name__)

# Registrant text fields must fit in payment session metadata values
MAX_FIELD_LENGTH = 250

# Webhook events that may carry a freshly paid checkout session
PAYMENT_EVENT_TYPES = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}


@dataclass
class ConfirmationResult:
    registration_id: uuid.UUID
    name: str
    email: str
    already_confirmed: bool


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _require(value: Optional[str], label: str) -> str:
    cleaned = _clean(value)
    if not cleaned:
        raise ValidationError("All fields are required.")
    if len(cleaned) > MAX_FIELD_LENGTH:
        raise ValidationError(f"{label} must be fewer than {MAX_FIELD_LENGTH} characters")
    return cleaned


class RegistrationLifecycleService:
    """Orchestrates the registration lifecycle over injected collaborators"""

    def __init__(
        self,
        registration_service: RegistrationService,
        payment_client: PaymentClient,
        email_service: EmailService,
        price_table: PriceTable,
        admin_password: Optional[str],
        app_base_url: str,
        event_name: str = "Kermesse",
    ):
        self.registrations = registration_service
        self.payment_client = payment_client
        self.email_service = email_service
        self.price_table = price_table
        self.admin_password = admin_password
        self.app_base_url = app_base_url.rstrip("/")
        self.event_name = event_name

    def create_checkout(
        self,
        name: Optional[str],
        email: Optional[str],
        contact_detail: Optional[str] = None,
        tier: Optional[str] = None,
    ) -> str:
        """
        Start a paid registration and return the hosted checkout URL.

        The registration id is minted here and travels only inside the
        checkout session metadata; nothing is written to the store.

        Raises:
            ValidationError: Missing/oversized fields or unknown tier
            DuplicateRegistration: The email is already registered
            PaymentGatewayError: Stripe failed to create the session
        """
        name = _require(name, "Name")
        email = _require(email, "Email").lower()
        if "@" not in email or " " in email:
            raise ValidationError("Invalid email address.")

        quote = self.price_table.quote(tier)
        if self.price_table.is_tiered and not _clean(contact_detail):
            contact_detail = quote.label
        contact_detail = _require(contact_detail, "Contact detail")

        if self.registrations.get_registration_by_email(email) is not None:
            raise DuplicateRegistration()

        registration_id = uuid.uuid4()
        product_name = f"{self.event_name} - {quote.label}"
        metadata = {
            "registration_id": str(registration_id),
            "name": name,
            "contact_detail": contact_detail,
            "email": email,
            "tier": quote.tier or "",
            "amount": str(quote.charged_amount),
            "currency": quote.currency,
        }

        session = self.payment_client.create_checkout_session(
            amount=quote.charged_amount,
            currency=quote.currency,
            product_name=product_name,
            description=f"{quote.label} access, includes service fee",
            customer_email=email,
            metadata=metadata,
            success_url=f"{self.app_base_url}/success.html?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.app_base_url}/",
        )

        logger.info(
            f"Checkout {session.id} started for registration {registration_id} "
            f"(tier={quote.tier}, amount={quote.charged_amount} {quote.currency})"
        )
        return session.url

    async def confirm_payment(self, session_id: Optional[str]) -> ConfirmationResult:
        """
        Confirm a paid checkout session and deliver the ticket exactly once.

        Safe to call repeatedly and concurrently for the same session (client
        redirect, page refresh, webhook): only the call that performs the paid
        transition sends the ticket.

        Raises:
            ValidationError: Missing or unknown session reference
            PaymentNotCompleted: The session is not paid
            DuplicateRegistration: The email belongs to another registration
            TicketDeliveryFailed: Paid and persisted, but the email failed
        """
        session_id = _clean(session_id)
        if not session_id:
            raise ValidationError("Session ID required.")

        # Gateway and store calls block; keep them off the event loop
        session = await asyncio.to_thread(
            self.payment_client.retrieve_checkout_session, session_id
        )
        if not session.is_paid:
            logger.info(
                f"Session {session_id} not paid (status={session.payment_status})"
            )
            raise PaymentNotCompleted()

        registration = self._registration_from_session(session)

        try:
            outcome = await asyncio.to_thread(
                self.registrations.record_payment, registration
            )
        except DuplicateRegistration:
            logger.error(
                f"Paid session {session_id} for registration {registration.id} "
                f"conflicts with an existing registration for {registration.email}"
            )
            raise

        stored = outcome.registration
        result = ConfirmationResult(
            registration_id=stored.id,
            name=stored.name,
            email=stored.email,
            already_confirmed=not outcome.newly_paid,
        )
        if not outcome.newly_paid:
            logger.info(f"Registration {stored.id} already confirmed")
            return result

        await self._deliver_ticket(stored)
        return result

    def verify_and_checkin(
        self, registration_id: Optional[str], credential: Optional[str]
    ) -> CheckInResult:
        """
        Door check-in for a scanned ticket.

        A repeat scan is not an error: it returns already_checked_in with the
        existing record and leaves checked_in_at untouched.

        Raises:
            Unauthorized: Credential mismatch
            ValidationError: Missing id
            NotFound: No registration has this id
        """
        self._authorize(credential)
        parsed_id = self._parse_registration_id(registration_id)
        return self.registrations.check_in(parsed_id)

    def list_registrations(self, credential: Optional[str]) -> list[Registration]:
        """All registrations, newest first (privileged)"""
        self._authorize(credential)
        return self.registrations.list_registrations()

    async def resend_ticket(
        self, registration_id: Optional[str], credential: Optional[str]
    ) -> Registration:
        """
        Manually resend a ticket, e.g. after TicketDeliveryFailed.

        Raises:
            Unauthorized: Credential mismatch
            NotFound: No registration has this id
            PaymentNotCompleted: The registration is not paid
            TicketDeliveryFailed: The email failed again
        """
        self._authorize(credential)
        parsed_id = self._parse_registration_id(registration_id)
        registration = await asyncio.to_thread(
            self.registrations.get_registration_by_id, parsed_id
        )
        if registration is None:
            raise NotFound()
        if registration.payment_status != PaymentStatus.PAID:
            raise PaymentNotCompleted()

        logger.info(f"Resending ticket for registration {registration.id}")
        await self._deliver_ticket(registration)
        return registration

    async def handle_webhook(self, payload: bytes, signature: Optional[str]) -> bool:
        """
        Confirm payments reported asynchronously by the gateway.

        Returns:
            bool: True if the event triggered a confirmation, False if ignored
        """
        event = self.payment_client.parse_webhook(payload, signature)
        if event.type not in PAYMENT_EVENT_TYPES or not event.session_id:
            logger.debug(f"Ignoring webhook event {event.type}")
            return False

        try:
            await self.confirm_payment(event.session_id)
        except ForeignCheckoutSession:
            logger.warning(f"Ignoring webhook for foreign session {event.session_id}")
            return False
        except PaymentNotCompleted:
            # Delayed payment methods complete later with async_payment_succeeded
            logger.info(f"Webhook for unpaid session {event.session_id}, waiting")
            return False
        except TicketDeliveryFailed as e:
            # Registration is recorded; redelivering the event would not resend
            logger.error(
                f"Webhook confirmed registration {e.registration_id} "
                "but ticket delivery failed"
            )
        return True

    async def _deliver_ticket(self, registration: Registration) -> None:
        ticket = encode_ticket(registration.id)
        sent = await self.email_service.send_ticket(
            registration.email, registration, ticket
        )
        if not sent:
            logger.error(
                f"TICKET UNDELIVERED: registration {registration.id} is paid "
                f"but the ticket email to {registration.email} failed"
            )
            raise TicketDeliveryFailed(registration.id)

    def _registration_from_session(self, session) -> Registration:
        metadata = session.metadata
        try:
            registration_id = uuid.UUID(metadata["registration_id"])
            email = metadata["email"]
            name = metadata["name"]
        except (KeyError, ValueError) as e:
            logger.error(
                f"Checkout session {session.id} has no usable registration metadata: {e}"
            )
            raise ForeignCheckoutSession() from e

        amount = metadata.get("amount")
        return Registration(
            id=registration_id,
            name=name,
            contact_detail=metadata.get("contact_detail") or "",
            email=email,
            tier=metadata.get("tier") or None,
            amount_paid=int(amount) if amount else None,
            currency=metadata.get("currency") or None,
            checkout_session_id=session.id,
            payment_status=PaymentStatus.PAID,
        )

    def _authorize(self, credential: Optional[str]) -> None:
        if not self.admin_password or not credential:
            raise Unauthorized()
        if not hmac.compare_digest(
            credential.encode("utf-8"), self.admin_password.encode("utf-8")
        ):
            logger.warning("Rejected privileged request with invalid credential")
            raise Unauthorized()

    @staticmethod
    def _parse_registration_id(registration_id: Optional[str]) -> uuid.UUID:
        cleaned = _clean(registration_id)
        if not cleaned:
            raise ValidationError("ID required.")
        try:
            return uuid.UUID(cleaned)
        except ValueError:
            raise NotFound()
