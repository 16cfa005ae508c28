"""Admin endpoints for listing registrations and resending tickets"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from kermesse.errors import (
    NotFound,
    PaymentNotCompleted,
    TicketDeliveryFailed,
    Unauthorized,
    ValidationError,
)
from kermesse.routers.dependencies import get_lifecycle_service
from kermesse.services.lifecycle_service import RegistrationLifecycleService

router = APIRouter(prefix="/admin", tags=["Admin"])

logger = logging.getLogger(__name__)


@router.get("/registrations")
def list_registrations(
    response: Response,
    password: Optional[str] = None,
    lifecycle: RegistrationLifecycleService = Depends(get_lifecycle_service),
):
    """All registrations, newest first. Requires the admin password."""
    try:
        registrations = lifecycle.list_registrations(password)
    except Unauthorized as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except Exception as e:
        logger.exception(f"Error listing registrations: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load registrations.",
        )

    response.headers["Cache-Control"] = "no-store"
    return [registration.model_dump(mode="json") for registration in registrations]


@router.post("/registrations/{registration_id}/resend-ticket")
async def resend_ticket(
    registration_id: str,
    password: Optional[str] = None,
    lifecycle: RegistrationLifecycleService = Depends(get_lifecycle_service),
):
    """Resend the ticket email for a paid registration"""
    try:
        registration = await lifecycle.resend_ticket(registration_id, password)
        return {"success": True, "registration_id": str(registration.id)}

    except Unauthorized as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except (ValidationError, PaymentNotCompleted) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except TicketDeliveryFailed as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    except Exception as e:
        logger.exception(f"Error resending ticket: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not resend the ticket.",
        )
