"""Database package: schema, connection pool and repositories."""

from .database import PortalDatabase, get_database, close_database

__all__ = ["PortalDatabase", "get_database", "close_database"]
