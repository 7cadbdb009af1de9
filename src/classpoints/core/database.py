"""Database engine, session factory and declarative base."""

from __future__ import annotations

from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Database:
    """Explicitly constructed store handle shared by the request scope."""

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        engine_kwargs: dict = {"echo": echo, "future": True}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        self.url = database_url
        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        # Register every mapped class on the metadata before emitting DDL
        from .. import models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a database session for request lifetime."""

    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
