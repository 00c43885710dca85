from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ravito.core.config import settings
from ravito.models.organization import Base


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live inside a single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # Production schemas come from Alembic
    import ravito.models  # noqa: F401  registers every table on Base.metadata

    if settings.is_dev:
        Base.metadata.create_all(bind=engine)


def drop_db() -> None:
    import ravito.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
