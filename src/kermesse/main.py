#!/usr/bin/env python3
"""Kermesse Tickets - registration, payment and door check-in API"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from kermesse.config import config
from kermesse.logging_config import get_logger, setup_logging
from kermesse.routers.admin import router as admin_router
from kermesse.routers.checkin import router as checkin_router
from kermesse.routers.checkout import router as checkout_router
from kermesse.routers.health import health
from kermesse.routers.webhooks import router as webhook_router

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)


app = FastAPI(
    title="Kermesse Tickets",
    description="Event registration with hosted checkout, emailed QR tickets and door check-in",
    version="1.0.0",
)

# Trust proxy headers (the platform terminates HTTPS and forwards via HTTP)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

# The registration page and the door scanner may be served from other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in config["cors_origins"].split(",")],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health)
app.include_router(checkout_router)
app.include_router(checkin_router)
app.include_router(admin_router)
app.include_router(webhook_router)


if __name__ == "__main__":
    port = config["port"]
    logger.info(f"Starting Kermesse Tickets on 0.0.0.0:{port}")
    logger.info("Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
