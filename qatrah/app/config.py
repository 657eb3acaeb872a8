"""Environment-driven settings."""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

# fall back to a local SQLite file when no database service is configured
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./qatrah.db")

# header carrying the subject id asserted by the upstream authentication proxy
SUBJECT_HEADER = os.getenv("QATRAH_SUBJECT_HEADER", "X-Subject-Id")

LOG_LEVEL = os.getenv("QATRAH_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
