"""Public checkout and payment confirmation endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from kermesse.errors import (
    DependencyFailure,
    DuplicateRegistration,
    PaymentNotCompleted,
    TicketDeliveryFailed,
    ValidationError,
)
from kermesse.routers.dependencies import get_lifecycle_service
from kermesse.services.lifecycle_service import RegistrationLifecycleService

router = APIRouter(tags=["Checkout"])

logger = logging.getLogger(__name__)


class CheckoutRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    contact_detail: Optional[str] = None
    tier: Optional[str] = None


class ConfirmPaymentRequest(BaseModel):
    session_id: Optional[str] = None


@router.post("/create-checkout")
def create_checkout(
    request: CheckoutRequest,
    lifecycle: RegistrationLifecycleService = Depends(get_lifecycle_service),
):
    """Start a paid registration and return the hosted checkout URL"""
    try:
        url = lifecycle.create_checkout(
            name=request.name,
            email=request.email,
            contact_detail=request.contact_detail,
            tier=request.tier,
        )
        return {"url": url}

    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except DuplicateRegistration as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except DependencyFailure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create the payment.",
        )
    except Exception as e:
        logger.exception(f"Error creating checkout: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create the payment.",
        )


@router.post("/confirm-payment")
async def confirm_payment(
    request: ConfirmPaymentRequest,
    lifecycle: RegistrationLifecycleService = Depends(get_lifecycle_service),
):
    """Verify a checkout session after the payment redirect and send the ticket"""
    try:
        result = await lifecycle.confirm_payment(request.session_id)
        return {
            "success": True,
            "name": result.name,
            "email": result.email,
            "alreadyConfirmed": result.already_confirmed,
        }

    except (ValidationError, PaymentNotCompleted) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except DuplicateRegistration as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except TicketDeliveryFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": e.message,
                "payment_confirmed": True,
                "registration_id": str(e.registration_id),
            },
        )
    except DependencyFailure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not confirm the payment.",
        )
    except Exception as e:
        logger.exception(f"Error confirming payment: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not confirm the payment.",
        )
