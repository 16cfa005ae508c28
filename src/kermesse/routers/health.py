import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, text

from kermesse.models.database import get_db

health = APIRouter()


@health.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "kermesse-tickets",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": os.getenv("ENVIRONMENT", "development"),
    }


@health.get("/health/detailed")
def detailed_health_check(db: Session = Depends(get_db)):
    """Detailed health check with database and configuration checks"""
    health_status = {
        "status": "healthy",
        "service": "kermesse-tickets",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": os.getenv("ENVIRONMENT", "development"),
        "checks": {},
    }

    # Database connectivity check
    try:
        result = db.exec(text("SELECT 1")).first()
        health_status["checks"]["database"] = "healthy" if result else "unhealthy"
    except Exception:
        health_status["checks"]["database"] = "unhealthy"
        health_status["status"] = "unhealthy"

    # Environment variables check
    required_env_vars = [
        "DATABASE_URL",
        "STRIPE_SECRET_KEY",
        "MAILGUN_API_KEY",
        "ADMIN_PASSWORD",
    ]
    missing_vars = [var for var in required_env_vars if not os.getenv(var)]
    if missing_vars:
        health_status["checks"]["environment"] = f"missing: {', '.join(missing_vars)}"
        health_status["status"] = "unhealthy"
    else:
        health_status["checks"]["environment"] = "healthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
