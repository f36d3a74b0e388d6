# sales_analytics/database.py
import sqlite3
from datetime import date, datetime
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.event import listen

from .config import settings

Base = declarative_base()

def _sqlite_on_connect(dbapi_con, con_record):
    """Enables foreign keys and registers date adapters for SQLite connections."""
    dbapi_con.execute('PRAGMA foreign_keys=ON')
    # Python 3.12+ deprecates the implicit date/datetime adapters
    sqlite3.register_adapter(date, lambda val: val.isoformat())
    sqlite3.register_adapter(datetime, lambda val: val.isoformat(" "))

def make_engine(database_url: str) -> Engine:
    """
    Builds an engine for the given URL.

    SQLite needs 'check_same_thread' disabled because FastAPI and the
    analytics thread pool use connections from worker threads.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
        listen(engine, 'connect', _sqlite_on_connect)
        return engine
    return create_engine(database_url, pool_pre_ping=True)

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

# The engine is the main entry point to the database.
engine = make_engine(settings.get_database_url())

# Create a SessionLocal class for database sessions
SessionLocal = make_session_factory(engine)
