"""FastAPI dependencies shared by the routers"""

from fastapi import Depends
from sqlmodel import Session

from kermesse.backends.payment_client import PaymentClient
from kermesse.config import config
from kermesse.models.database import get_db
from kermesse.services.email_service import EmailService, get_email_service
from kermesse.services.lifecycle_service import RegistrationLifecycleService
from kermesse.services.payment_service import get_payment_client
from kermesse.services.pricing_service import PriceTable, get_price_table
from kermesse.services.registration_service import RegistrationService


def get_lifecycle_service(
    db: Session = Depends(get_db),
    payment_client: PaymentClient = Depends(get_payment_client),
    email_service: EmailService = Depends(get_email_service),
    price_table: PriceTable = Depends(get_price_table),
) -> RegistrationLifecycleService:
    """Build the lifecycle service for one request"""
    return RegistrationLifecycleService(
        registration_service=RegistrationService(db),
        payment_client=payment_client,
        email_service=email_service,
        price_table=price_table,
        admin_password=config["admin_password"],
        app_base_url=config["app_base_url"],
        event_name=config["event_name"],
    )
