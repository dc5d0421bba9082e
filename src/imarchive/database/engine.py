# File: imarchive/database/engine.py

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_catalog_engine(database_url: str, echo: bool = False) -> Engine:
    """Return a SQLAlchemy engine for the catalog at ``database_url``."""
    if database_url in IN_MEMORY_URLS:
        # one shared connection, otherwise every session sees an empty database
        return create_engine(
            database_url,
            echo=echo,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(database_url, echo=echo, future=True)
