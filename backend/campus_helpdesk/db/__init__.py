"""Database package"""

from campus_helpdesk.db.session import build_engine, build_session_factory, create_tables
from campus_helpdesk.models.base import Base

__all__ = ["Base", "build_engine", "build_session_factory", "create_tables"]
