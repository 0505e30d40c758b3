from __future__ import annotations
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from fxcrowd.config import settings

class Base(DeclarativeBase):
    pass

def make_engine(url: str) -> Engine:
    """
    Build the Database Engine for a URL.

    SQLite (used by tests and quick local runs) does not take pool sizing
    arguments, so those only apply to server databases.
    """
    if url.startswith("sqlite"):
        return create_engine(url, echo=False, connect_args={"check_same_thread": False})

    # Now, we create the Database Engine.
    # This is a Singleton object that manages the connection pool to the database.
    # - pool_size=5: Keep 5 connections open and ready.
    # - max_overflow=10: Allow spiking up to 15 connections during heavy load.
    # - pool_pre_ping=True: Check if connection is alive before using it.
    return create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )

engine = make_engine(settings.database_url)

# Now, we create a Session Factory.
# This factory will generate new Session objects for each request or task.
# autoflush=False: We want control over when SQL is emitted.
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def init_db(bind: Engine | None = None):
    from fxcrowd import models  # Import models to register them with Base
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
