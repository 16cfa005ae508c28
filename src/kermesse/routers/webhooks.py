"""Stripe webhook endpoint"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from kermesse.errors import DependencyFailure, DuplicateRegistration, ValidationError
from kermesse.routers.dependencies import get_lifecycle_service
from kermesse.services.lifecycle_service import RegistrationLifecycleService

router = APIRouter(include_in_schema=False)

logger = logging.getLogger(__name__)


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    lifecycle: RegistrationLifecycleService = Depends(get_lifecycle_service),
):
    """Confirm payments that Stripe reports asynchronously"""
    payload = await request.body()
    try:
        handled = await lifecycle.handle_webhook(payload, stripe_signature)
        return {"received": True, "handled": handled}

    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except DuplicateRegistration:
        # Retrying cannot fix this; acknowledge so Stripe stops redelivering
        return {"received": True, "handled": False}
    except DependencyFailure:
        # Non-2xx makes Stripe redeliver the event later
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Temporarily unable to process webhook.",
        )
    except Exception as e:
        logger.exception(f"Error processing Stripe webhook: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed.",
        )
