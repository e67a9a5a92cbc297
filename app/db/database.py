import logging
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite databases share one connection so every session (and the
    threadpool FastAPI runs sync work on) sees the same data.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    from app.db import models  # noqa: F401  (registers the mappers)

    Base.metadata.create_all(engine)
    logger.info(f"Database schema ready ({engine.url.get_backend_name()})")


@lru_cache
def get_engine() -> Engine:
    return build_engine(settings.DATABASE_URL)


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), expire_on_commit=False)
