"""Centralized payment gateway client for the application"""

import logging

from kermesse.backends.payment_client import PaymentClient
from kermesse.config import config

logger = logging.getLogger(__name__)

# Global payment client instance
_payment_client = None


def get_payment_client() -> PaymentClient:
    """Get or create the global payment client instance"""
    global _payment_client
    if _payment_client is None:
        _payment_client = PaymentClient(config)
        logger.info("Initialized global payment client")
    return _payment_client
