"""Ticket encoder: registration id -> QR code PNG.

Only the encoded payload matters for door check-in. Size and colors are
presentation and may change without affecting scanning.
"""

import base64
import io
import uuid
from dataclasses import dataclass
from typing import Union

import segno

TICKET_SCALE = 9  # ~300px for a UUID payload
TICKET_BORDER = 2
TICKET_DARK = "#1a1a2e"
TICKET_LIGHT = "#ffffff"
TICKET_FILENAME = "ticket.png"


@dataclass(frozen=True)
class TicketImage:
    payload: str
    png: bytes

    @property
    def data_uri(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.png).decode("ascii")


def encode_ticket(registration_id: Union[str, uuid.UUID]) -> TicketImage:
    """Encode exactly the registration id string as a QR code"""
    payload = str(registration_id)
    qr = segno.make_qr(payload, error="m", boost_error=False)

    buffer = io.BytesIO()
    qr.save(
        buffer,
        kind="png",
        scale=TICKET_SCALE,
        border=TICKET_BORDER,
        dark=TICKET_DARK,
        light=TICKET_LIGHT,
    )
    return TicketImage(payload=payload, png=buffer.getvalue())
