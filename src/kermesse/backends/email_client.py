import logging
from typing import Dict, List, Optional, Tuple

from mailgun.client import Client

logger = logging.getLogger(__name__)

# (filename, content) pairs referenced from HTML bodies as cid:<filename>
InlineImage = Tuple[str, bytes]


class EmailClient:
    def __init__(self, config: dict):
        self.mailgun_api_key = config["mailgun_api_key"]
        self.domain = config["mailgun_domain"]
        self.sender_email = config["sender_email"]

        self.client = Client(auth=("api", self.mailgun_api_key))

    async def send_email(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        inline_images: Optional[List[InlineImage]] = None,
    ) -> Dict:
        """
        Send email using Mailgun API

        Args:
            to: Recipient email address
            subject: Email subject
            text: Plain-text body
            html: Optional HTML body
            inline_images: Optional images embedded in the HTML body by cid

        Returns:
            Dict containing Mailgun API response

        Raises:
            RuntimeError: If email sending fails
        """
        data = {
            "from": self.sender_email,
            "to": to,
            "subject": subject,
            "text": text,
            "o:tag": "ticket-delivery",
        }
        if html:
            data["html"] = html

        files = [
            ("inline", (filename, content, "image/png"))
            for filename, content in inline_images or []
        ]

        try:
            req = self.client.messages.create(
                data=data, files=files or None, domain=self.domain
            )
            response = req.json()

            # Check if request was successful
            if req.status_code != 200:
                logger.error(f"Mailgun API error: {req.status_code} - {response}")
                raise RuntimeError(f"Failed to send email: {response}")

            logger.info(
                f"Email sent successfully to {to}: {response.get('id', 'unknown')}"
            )
            return response

        except Exception as e:
            logger.error(f"Failed to send email to {to}: {str(e)}")
            raise RuntimeError(f"Email sending failed: {str(e)}") from e
