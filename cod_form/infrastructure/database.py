import logging
import time

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

from cod_form.core.config import settings

logger = logging.getLogger(__name__)

# SQLite needs this to be shared across FastAPI's worker threads.
_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args)

# Repositories hand ORM objects back after the session is closed.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base = declarative_base()


def init_db(bind=None, retries: int | None = None, wait_seconds: int | None = None) -> bool:
    """
    Creates the tables, retrying while the database container is still
    starting up. Returns False if every attempt failed.
    """
    # Models must be imported so they register on Base.metadata
    from cod_form.domain import models  # noqa: F401

    bind = bind or engine
    retries = retries if retries is not None else settings.DB_CONNECT_RETRIES
    wait_seconds = wait_seconds if wait_seconds is not None else settings.DB_CONNECT_WAIT_SECONDS

    for attempt in range(retries):
        try:
            logger.info(f"🔄 Attempting DB connection ({attempt + 1}/{retries})...")
            Base.metadata.create_all(bind=bind)
            logger.info("✅ DB Connected and Tables Created.")
            return True
        except OperationalError:
            logger.warning(f"⚠️ DB not ready yet. Waiting {wait_seconds}s...")
            time.sleep(wait_seconds)

    logger.error("❌ Could not connect to DB after retries.")
    return False
