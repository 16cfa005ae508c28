"""Configuration loader for Kermesse Tickets"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL"),
    "port": int(os.getenv("PORT", "3000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "provider_log_level": os.getenv("PROVIDER_LOG_LEVEL", "WARNING"),
    "app_base_url": os.getenv("APP_BASE_URL", "http://localhost:3000"),
    "cors_origins": os.getenv("CORS_ORIGINS", "*"),
    "admin_password": os.getenv("ADMIN_PASSWORD"),
    "stripe_secret_key": os.getenv("STRIPE_SECRET_KEY"),
    "stripe_webhook_secret": os.getenv("STRIPE_WEBHOOK_SECRET"),
    "mailgun_api_key": os.getenv("MAILGUN_API_KEY"),
    "mailgun_domain": os.getenv("MAILGUN_DOMAIN"),
    "sender_email": os.getenv("SENDER_EMAIL"),
    "event_name": os.getenv("EVENT_NAME", "Kermesse"),
    # Pricing. Either a JSON tier table or a single unit price, in minor units.
    # Example TICKET_TIERS: {"general": {"label": "General", "price": 95000}}
    "ticket_tiers": os.getenv("TICKET_TIERS"),
    "ticket_unit_price": os.getenv("TICKET_UNIT_PRICE"),
    "service_fee_percent": os.getenv("SERVICE_FEE_PERCENT", "6"),
    "currency": os.getenv("CURRENCY", "mxn"),
    "environment": os.getenv("ENVIRONMENT"),
}
