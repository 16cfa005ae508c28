"""Door check-in endpoint"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from kermesse.errors import NotFound, Unauthorized, ValidationError
from kermesse.routers.dependencies import get_lifecycle_service
from kermesse.services.lifecycle_service import RegistrationLifecycleService
from kermesse.services.registration_service import CheckInStatus

router = APIRouter(tags=["Check-in"])

logger = logging.getLogger(__name__)

CHECK_IN_MESSAGES = {
    CheckInStatus.SUCCESS: "Valid ticket!",
    CheckInStatus.ALREADY_CHECKED_IN: "Already checked in.",
}


class VerifyRequest(BaseModel):
    id: Optional[str] = None
    password: Optional[str] = None


@router.post("/verify")
def verify(
    request: VerifyRequest,
    lifecycle: RegistrationLifecycleService = Depends(get_lifecycle_service),
):
    """Check in a scanned ticket; repeat scans report already_checked_in"""
    try:
        result = lifecycle.verify_and_checkin(request.id, request.password)
    except Unauthorized as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except NotFound as e:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"status": "not_found", "message": e.message},
        )
    except Exception as e:
        logger.exception(f"Error during check-in: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not verify the ticket.",
        )

    return {
        "status": result.status.value,
        "message": CHECK_IN_MESSAGES[result.status],
        "registration": result.registration.model_dump(mode="json"),
    }
