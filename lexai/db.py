from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from lexai.config import settings
from lexai.utils.logging import logger


def build_engine(url: str):
    # sync routes share connections across threadpool workers
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, future=True, connect_args=connect_args)


engine = build_engine(settings.database_url)
logger.info(f"Database engine created for {engine.url.get_backend_name()}")

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """Request-scoped session; rolled back if the handler raises."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        logger.exception("Request failed with an open DB session, rolling back")
        db.rollback()
        raise
    finally:
        db.close()
