from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from repairtrack.config import settings


def build_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    url = database_url or settings.database_url
    kwargs = {}
    if url.startswith("sqlite"):
        # TestClient and the threadpool share connections across threads
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one live connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(url, echo=settings.sql_echo if echo is None else echo, **kwargs)


def create_schema(engine: Engine) -> None:
    """Create all tables registered on the SQLModel metadata."""
    from repairtrack import models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(engine)
