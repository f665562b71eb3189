from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class Database:
    """Shared store handle: one engine and its session factory.

    Built once at startup and handed to the app explicitly, so tests can
    point each app at its own database.
    """

    def __init__(self, url: str):
        self.url = url
        # Only apply sqlite-specific connect_args when using sqlite
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}

        # Enable pool_pre_ping to avoid stale connections (useful for cloud DBs like Neon)
        self.engine = create_engine(
            url,
            connect_args=connect_args,
            pool_pre_ping=True,
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self):
        # models must be imported so their tables are registered on Base
        from tasktracker.models import task, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request):
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit everything done inside the block, or nothing.

    Any exception rolls the session back and is re-raised unchanged.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
