from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from backend.app.config import get_settings

settings = get_settings()
DATABASE_URL = settings.database_url


def _connect_args(url: str, timeout_seconds: float) -> dict:
    """Driver timeout arguments.

    PostgreSQL gets a statement_timeout that caps how long any query, ledger
    aggregation included, may run. SQLite only supports a lock-wait (busy)
    timeout: it bounds waiting on a locked database file, not query runtime.
    """
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout_seconds}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={int(timeout_seconds * 1000)}"}
    return {}


# Create SQLAlchemy engine
engine = create_engine(
    DATABASE_URL, connect_args=_connect_args(DATABASE_URL, settings.ledger_timeout_seconds)
)

# Create sessionmaker
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create tables in the database
def create_tables():
    from backend.app.models.models import Base
    Base.metadata.create_all(bind=engine)

# Dependency to get the database session
def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
