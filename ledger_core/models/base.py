"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db().
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from ledger_core.config import get_settings

settings = get_settings()


def _connect_args(database_url: str) -> dict:
    """
    Driver-level options, including the statement timeout.

    A storage call that exceeds the timeout raises an
    OperationalError, which the services turn into a
    retryable StorageUnavailable rather than a partial write.
    """
    if database_url.startswith("postgresql"):
        return {
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        }
    if database_url.startswith("sqlite"):
        return {
            "check_same_thread": False,
            "timeout": settings.DB_STATEMENT_TIMEOUT_MS / 1000,
        }
    return {}


# --- Engine ---
# pool_pre_ping=True tests connections before using them, so a
# restarted database does not surface as a failed request.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# --- Session Factory ---
# autocommit=False: services flush, the API layer commits.
# A ledger close either writes all of its rows or none of them.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally guarantees the session is closed and its
    connection returned to the pool even if the endpoint raises.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
