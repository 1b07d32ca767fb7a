"""
Data Access Object package.

WHY: DAOs hold every SQLAlchemy statement of the relational store.
"""

from campus_helpdesk.dao.base import BaseDAO
from campus_helpdesk.dao.user import UserDAO
from campus_helpdesk.dao.ticket import TicketDAO, TicketCommentDAO

__all__ = [
    "BaseDAO",
    "UserDAO",
    "TicketDAO",
    "TicketCommentDAO",
]
