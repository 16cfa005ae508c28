"""Email service for delivering QR tickets"""

import html
import logging

from kermesse.backends.email_client import EmailClient
from kermesse.config import config
from kermesse.models.registration import Registration
from kermesse.services.ticket_service import TICKET_FILENAME, TicketImage

logger = logging.getLogger(__name__)


class EmailService:
    """Service for composing and sending ticket emails"""

    def __init__(self, email_client: EmailClient, event_name: str):
        self.email_client = email_client
        self.event_name = event_name

    async def send_ticket(
        self, recipient_email: str, registration: Registration, ticket: TicketImage
    ) -> bool:
        """
        Send the ticket email with the QR code embedded inline.

        Args:
            recipient_email: Where to deliver the ticket
            registration: Registrant details shown in the email
            ticket: Encoded QR ticket

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        subject = f"Your ticket - {self.event_name}"
        text = self._build_text(registration, ticket)
        html_body = self._build_html(registration, ticket)

        try:
            await self.email_client.send_email(
                to=recipient_email,
                subject=subject,
                text=text,
                html=html_body,
                inline_images=[(TICKET_FILENAME, ticket.png)],
            )
            logger.info(
                f"Ticket for registration {registration.id} sent to {recipient_email}"
            )
            return True
        except Exception as e:
            logger.error(
                f"Failed to send ticket for registration {registration.id} "
                f"to {recipient_email}: {e}"
            )
            return False

    def _build_text(self, registration: Registration, ticket: TicketImage) -> str:
        return f"""Hi {registration.name},

Your payment was processed and your place at {self.event_name} is confirmed.

Name: {registration.name}
Ticket: {registration.contact_detail}

Show the attached QR code at the entrance on the day of the event.

Ticket ID: {ticket.payload}"""

    def _build_html(self, registration: Registration, ticket: TicketImage) -> str:
        name = html.escape(registration.name)
        detail = html.escape(registration.contact_detail)
        event_name = html.escape(self.event_name)
        return f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; background: #f5f0e8; margin: 0; padding: 24px;">
  <div style="max-width: 520px; margin: 0 auto; background: #ffffff; border-radius: 12px; padding: 32px;">
    <h1 style="margin: 0 0 8px;">{event_name}</h1>
    <p>Hi {name}, your place is confirmed.</p>
    <p>Name: <strong>{name}</strong><br/>Ticket: <strong>{detail}</strong></p>
    <div style="text-align: center; margin: 24px 0;">
      <img src="cid:{TICKET_FILENAME}" alt="QR code" width="200" height="200"/>
      <p style="font-size: 12px; color: #555;">Show this code at the entrance</p>
    </div>
    <p style="font-family: monospace; font-size: 10px; color: #999;">ID: {ticket.payload}</p>
  </div>
</body>
</html>"""


# Global email service instance
_email_service = None


def get_email_service() -> EmailService:
    """Get or create the global email service instance"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService(EmailClient(config), config["event_name"])
        logger.info("Initialized global email service")
    return _email_service
