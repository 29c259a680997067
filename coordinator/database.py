"""SQLModel engine construction and table creation."""

import logging

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from coordinator.models.trade_row import TradeRow  # noqa: F401  (registers the table)

logger = logging.getLogger(__name__)


def make_engine(database_url: str, echo: bool = False):
    """Create an engine; SQLite gets the thread and in-memory tweaks it needs."""
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        # Registry writes may come from worker threads
        connect_args["check_same_thread"] = False
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty db
            kwargs["poolclass"] = StaticPool

    return create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)


def create_db_and_tables(engine):
    """Create all tables. Called on startup."""
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ready")
