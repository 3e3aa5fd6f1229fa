"""
Environment-driven settings

Values come from the process environment, with a .env file in the working
directory loaded first. Command-line flags override these.
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass(frozen=True)
class Settings:
    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    review_threshold: int
    batch_size: int


def get_settings() -> Settings:
    """Read settings from the environment (re-read on every call)"""
    return Settings(
        db_host=os.getenv('DB_HOST', 'localhost'),
        db_port=int(os.getenv('DB_PORT', '5432')),
        db_name=os.getenv('DB_NAME', 'household_db'),
        db_user=os.getenv('DB_USER', 'household_user'),
        db_password=os.getenv('DB_PASSWORD', 'household_password_local_dev'),
        review_threshold=int(os.getenv('REVIEW_THRESHOLD', '70')),
        batch_size=int(os.getenv('BATCH_SIZE', '50')),
    )
