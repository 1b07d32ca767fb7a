"""
Demo data for the in-memory store.

WHAT: One student, one IT admin and two sample tickets.

WHY: Lets the presentation layer be exercised without a database or an
identity provider session. Enabled with SEED_DEMO_DATA.
"""

import logging
from datetime import timedelta

from campus_helpdesk.models.base import utcnow
from campus_helpdesk.models.ticket import TicketPriority, TicketStatus
from campus_helpdesk.models.user import UserRole
from campus_helpdesk.store.base import PersistenceStore

logger = logging.getLogger(__name__)

DEMO_STUDENT_ID = "student1"
DEMO_ADMIN_ID = "admin1"


async def seed_demo_data(store: PersistenceStore) -> None:
    """Insert the demo users and tickets into an empty store."""
    now = utcnow()

    await store.upsert_user(
        {
            "id": DEMO_STUDENT_ID,
            "email": "student@university.edu",
            "first_name": "Anushtha",
            "last_name": "Sharma",
            "role": UserRole.STUDENT.value,
        }
    )
    await store.upsert_user(
        {
            "id": DEMO_ADMIN_ID,
            "email": "admin@university.edu",
            "first_name": "IT",
            "last_name": "Admin",
            "role": UserRole.ADMIN.value,
        }
    )

    created = now - timedelta(days=1)
    await store.insert_ticket(
        {
            "subject": "Computer won't start",
            "description": "The computer in lab 201 won't turn on. Power button doesn't respond.",
            "issue_type": "hardware",
            "priority": TicketPriority.HIGH.value,
            "status": TicketStatus.NEW.value,
            "location": "Room 201, Computer Lab",
            "submitter_id": DEMO_STUDENT_ID,
            "created_at": created,
            "updated_at": created,
        }
    )
    await store.insert_ticket(
        {
            "subject": "Email not working",
            "description": "Cannot access university email account. Getting authentication error.",
            "issue_type": "email",
            "priority": TicketPriority.MEDIUM.value,
            "status": TicketStatus.IN_PROGRESS.value,
            "location": "Library Study Room 3",
            "submitter_id": DEMO_STUDENT_ID,
            "assigned_to_id": DEMO_ADMIN_ID,
            "created_at": now - timedelta(days=2),
            "updated_at": now - timedelta(hours=12),
        }
    )

    logger.info("Seeded demo data: 2 users, 2 tickets")
