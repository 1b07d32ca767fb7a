"""
Unit tests for the ticket and user DAOs.

WHAT: Tests for TicketDAO, TicketCommentDAO and UserDAO against SQLite.

WHY: Verifies that:
1. Joined reads load submitter, assignee and comment author eagerly
2. Listings are newest first and honor every filter
3. Statistics come out of one aggregate statement
4. User upsert keeps the original creation time

HOW: Uses pytest-asyncio with in-memory SQLite database for isolation.
"""

import pytest
from datetime import timedelta
from sqlalchemy import inspect

from campus_helpdesk.dao.ticket import TicketDAO, TicketCommentDAO
from campus_helpdesk.dao.user import UserDAO
from campus_helpdesk.models.base import utcnow
from campus_helpdesk.models.user import UserRole


async def _make_users(db_session):
    user_dao = UserDAO(db_session)
    student = await user_dao.create(id="student1", email="student@university.edu", role="student")
    admin = await user_dao.create(id="admin1", email="admin@university.edu", role="admin")
    return student, admin


async def _make_ticket(db_session, submitter_id, **overrides):
    values = {
        "submitter_id": submitter_id,
        "subject": "Printer jam",
        "description": "Tray 2 stuck",
        "issue_type": "printing",
        "priority": "low",
    }
    values.update(overrides)
    return await TicketDAO(db_session).create(**values)


class TestTicketDAORead:
    """Joined reads and listings."""

    @pytest.mark.asyncio
    async def test_defaults_on_create(self, db_session):
        student, _ = await _make_users(db_session)

        ticket = await _make_ticket(db_session, student.id)

        assert ticket.id is not None
        assert ticket.status == "new"
        assert ticket.created_at is not None

    @pytest.mark.asyncio
    async def test_get_with_relations_loads_users(self, db_session):
        student, admin = await _make_users(db_session)
        created = await _make_ticket(db_session, student.id, assigned_to_id=admin.id)

        ticket = await TicketDAO(db_session).get_by_id_with_relations(created.id)

        state = inspect(ticket)
        assert "submitter" not in state.unloaded
        assert "assignee" not in state.unloaded
        assert ticket.submitter.id == student.id
        assert ticket.assignee.id == admin.id

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session):
        student, _ = await _make_users(db_session)
        now = utcnow()
        old = await _make_ticket(db_session, student.id, created_at=now - timedelta(days=1))
        new = await _make_ticket(db_session, student.id, created_at=now)

        tickets = await TicketDAO(db_session).list()

        assert [t.id for t in tickets] == [new.id, old.id]

    @pytest.mark.asyncio
    async def test_list_filters(self, db_session):
        student, admin = await _make_users(db_session)
        await _make_ticket(db_session, student.id, status="resolved")
        assigned = await _make_ticket(db_session, student.id, assigned_to_id=admin.id, priority="critical")

        dao = TicketDAO(db_session)

        assert [t.id for t in await dao.list(assigned_to_id=admin.id)] == [assigned.id]
        assert [t.id for t in await dao.list(priority="critical")] == [assigned.id]
        assert len(await dao.list(status="resolved")) == 1
        assert len(await dao.list(unassigned_only=True)) == 1
        assert len(await dao.list(submitter_id="nobody")) == 0


class TestTicketDAOStats:
    """Aggregate counters."""

    @pytest.mark.asyncio
    async def test_get_stats(self, db_session):
        student, admin = await _make_users(db_session)
        await _make_ticket(db_session, student.id, priority="high")
        await _make_ticket(db_session, student.id, status="in-progress", priority="critical")
        await _make_ticket(db_session, student.id, status="resolved")
        await _make_ticket(db_session, admin.id, status="closed")

        dao = TicketDAO(db_session)

        assert await dao.get_stats() == {
            "total": 4,
            "new": 1,
            "in_progress": 1,
            "resolved": 1,
            "high": 2,
        }
        assert (await dao.get_stats(student.id))["total"] == 3

    @pytest.mark.asyncio
    async def test_get_stats_empty(self, db_session):
        stats = await TicketDAO(db_session).get_stats()

        assert stats == {"total": 0, "new": 0, "in_progress": 0, "resolved": 0, "high": 0}

    @pytest.mark.asyncio
    async def test_resolution_durations(self, db_session):
        student, admin = await _make_users(db_session)
        now = utcnow()
        await _make_ticket(
            db_session,
            student.id,
            status="resolved",
            created_at=now - timedelta(hours=6),
            updated_at=now,
        )
        await _make_ticket(db_session, student.id, status="closed", created_at=now - timedelta(days=9), updated_at=now)

        durations = await TicketDAO(db_session).resolution_durations()

        assert durations == [timedelta(hours=6)]

    @pytest.mark.asyncio
    async def test_count_assigned(self, db_session):
        student, admin = await _make_users(db_session)
        await _make_ticket(db_session, student.id, assigned_to_id=admin.id)
        await _make_ticket(db_session, student.id)

        assert await TicketDAO(db_session).count_assigned(admin.id) == 1


class TestTicketCommentDAO:
    """Comment listing."""

    @pytest.mark.asyncio
    async def test_list_for_ticket_newest_first(self, db_session):
        student, admin = await _make_users(db_session)
        ticket = await _make_ticket(db_session, student.id)
        comment_dao = TicketCommentDAO(db_session)
        now = utcnow()
        first = await comment_dao.create(
            ticket_id=ticket.id, user_id=student.id, comment="Hello", created_at=now - timedelta(minutes=1)
        )
        second = await comment_dao.create(
            ticket_id=ticket.id, user_id=admin.id, comment="Note", is_internal=True, created_at=now
        )

        comments = await comment_dao.list_for_ticket(ticket.id)

        assert [c.id for c in comments] == [second.id, first.id]
        assert comments[0].user.id == admin.id
        assert comments[0].is_internal is True


class TestUserDAO:
    """User lookups and upsert."""

    @pytest.mark.asyncio
    async def test_get_by_email_case_insensitive(self, db_session):
        student, _ = await _make_users(db_session)

        found = await UserDAO(db_session).get_by_email("Student@University.EDU")

        assert found.id == student.id

    @pytest.mark.asyncio
    async def test_list_by_role(self, db_session):
        _, admin = await _make_users(db_session)

        admins = await UserDAO(db_session).list_by_role(UserRole.ADMIN)

        assert [u.id for u in admins] == [admin.id]

    @pytest.mark.asyncio
    async def test_upsert_keeps_created_at(self, db_session):
        dao = UserDAO(db_session)
        created = await dao.upsert("u1", email="u1@university.edu", role="student")
        original_created_at = created.created_at

        updated = await dao.upsert(
            "u1", email="u1@university.edu", role="admin", created_at=utcnow() + timedelta(days=1)
        )

        assert updated.role == "admin"
        assert updated.created_at == original_created_at

    @pytest.mark.asyncio
    async def test_get_all_rejects_unknown_field(self, db_session):
        with pytest.raises(AttributeError):
            await UserDAO(db_session).get_all(nickname="x")
