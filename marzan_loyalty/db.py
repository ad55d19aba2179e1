from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import sessionmaker, declarative_base

from marzan_loyalty.config import DATABASE_URL


def engine_args(database_url: str) -> tuple[URL, dict]:
    """Parse the configured URL and pick per-backend connect args."""
    url = make_url(database_url)

    connect_args = {}
    if url.get_backend_name() == "postgresql":
        connect_args = {"options": "-c timezone=utc"}
    elif url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False}
    return url, connect_args


url, connect_args = engine_args(DATABASE_URL)

engine = create_engine(url, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
