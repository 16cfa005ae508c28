"""Database configuration"""

import os

from sqlalchemy import create_engine
from sqlmodel import Session

from kermesse.config import config

# Database URL from config
DATABASE_URL = config["database_url"]

# Validate DATABASE_URL exists
if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Make sure to set DATABASE_URL in the deployment dashboard or local .env file."
    )


def build_engine(database_url: str):
    """Create an engine; SQLite connections are shared across request threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=os.getenv("DEBUG", "false").lower() == "true",
        connect_args=connect_args,
    )


engine = build_engine(DATABASE_URL)


def get_db():
    """Get database session"""
    with Session(engine) as session:
        yield session
