import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import stripe

from kermesse.errors import PaymentGatewayError, ValidationError

logger = logging.getLogger(__name__)

# Checkout session payment states that mean the attendee owes nothing more
COMPLETED_PAYMENT_STATUSES = {"paid", "no_payment_required"}


@dataclass
class CheckoutSession:
    """The parts of a Stripe Checkout Session the lifecycle relies on"""

    id: str
    url: Optional[str]
    payment_status: str
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status in COMPLETED_PAYMENT_STATUSES


@dataclass
class WebhookEvent:
    type: str
    session_id: Optional[str]


class PaymentClient:
    def __init__(self, config: dict):
        self.api_key = config["stripe_secret_key"]
        self.webhook_secret = config.get("stripe_webhook_secret")

    def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        product_name: str,
        description: str,
        customer_email: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """
        Create a hosted Stripe Checkout session for a single ticket.

        Args:
            amount: Charged amount in minor currency units
            currency: ISO currency code
            product_name: Line item name shown on the checkout page
            description: Line item description
            customer_email: Prefilled email on the checkout page
            metadata: Opaque key/value pairs returned untouched on retrieval
            success_url: Redirect after payment, may contain {CHECKOUT_SESSION_ID}
            cancel_url: Redirect when the attendee abandons checkout

        Returns:
            CheckoutSession with the redirect URL

        Raises:
            PaymentGatewayError: If Stripe rejects the request or is unreachable
        """
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                mode="payment",
                customer_email=customer_email,
                line_items=[
                    {
                        "price_data": {
                            "currency": currency,
                            "unit_amount": amount,
                            "product_data": {
                                "name": product_name,
                                "description": description,
                            },
                        },
                        "quantity": 1,
                    }
                ],
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(
                f"Stripe checkout creation failed ({type(e).__name__}): {str(e)}"
            )
            raise PaymentGatewayError() from e

        logger.info(f"Created checkout session {session.id}")
        return self._to_checkout_session(session)

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch the current state of a checkout session from Stripe"""
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as e:
            # Unknown or malformed session ids are a client error
            logger.warning(f"Stripe rejected session id {session_id}: {str(e)}")
            raise ValidationError("Invalid payment session.") from e
        except stripe.StripeError as e:
            logger.error(
                f"Stripe session retrieval failed for {session_id} "
                f"({type(e).__name__}): {str(e)}"
            )
            raise PaymentGatewayError() from e

        return self._to_checkout_session(session)

    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify a Stripe webhook signature and extract the event.

        Raises:
            ValidationError: If the signature is missing or invalid
            PaymentGatewayError: If no webhook secret is configured
        """
        if not self.webhook_secret:
            logger.error("Received Stripe webhook but STRIPE_WEBHOOK_SECRET is not set")
            raise PaymentGatewayError("Webhooks are not configured.")
        if not signature:
            raise ValidationError("Missing webhook signature.")

        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self.webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Invalid Stripe webhook signature: {str(e)}")
            raise ValidationError("Invalid webhook signature.") from e
        except ValueError as e:
            logger.warning(f"Malformed Stripe webhook payload: {str(e)}")
            raise ValidationError("Invalid webhook payload.") from e

        data_object = event.data.object
        session_id = None
        if getattr(data_object, "object", None) == "checkout.session":
            session_id = data_object.id
        return WebhookEvent(type=event.type, session_id=session_id)

    @staticmethod
    def _to_checkout_session(session) -> CheckoutSession:
        metadata = session.metadata or {}
        return CheckoutSession(
            id=session.id,
            url=session.url,
            payment_status=session.payment_status,
            metadata={key: str(metadata[key]) for key in metadata.keys()},
        )
