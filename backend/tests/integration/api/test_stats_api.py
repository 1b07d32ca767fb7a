"""
Integration tests for the statistics endpoint.

WHY: The same route serves two shapes depending on the caller's role, so
both shapes and their field names are pinned here.
"""

import pytest
from datetime import timedelta
from httpx import AsyncClient

from campus_helpdesk.models.base import utcnow
from campus_helpdesk.models.ticket import TicketPriority, TicketStatus
from tests.factories import TicketFactory, token_headers


class TestStudentStats:
    """GET /api/stats as a submitter"""

    @pytest.mark.asyncio
    async def test_counts_own_tickets_only(
        self, client: AsyncClient, store, student, other_student, student_headers
    ):
        await TicketFactory.create(store, student.id, priority=TicketPriority.CRITICAL)
        await TicketFactory.create(store, student.id, status=TicketStatus.RESOLVED)
        await TicketFactory.create(store, student.id, status=TicketStatus.CLOSED)
        await TicketFactory.create(store, other_student.id, status=TicketStatus.IN_PROGRESS)

        response = await client.get("/api/stats", headers=student_headers)

        assert response.status_code == 200
        assert response.json() == {
            "total": 3,
            "new": 1,
            "inProgress": 0,
            "resolved": 1,
            "high": 1,
        }

    @pytest.mark.asyncio
    async def test_empty(self, client: AsyncClient, student_headers):
        response = await client.get("/api/stats", headers=student_headers)

        assert response.json() == {"total": 0, "new": 0, "inProgress": 0, "resolved": 0, "high": 0}


class TestAdminStats:
    """GET /api/stats as IT staff"""

    @pytest.mark.asyncio
    async def test_dashboard_counters(self, client: AsyncClient, store, student, admin, admin_headers):
        now = utcnow()
        await TicketFactory.create(store, student.id, priority=TicketPriority.HIGH)
        await TicketFactory.create(
            store, student.id, status=TicketStatus.IN_PROGRESS, assigned_to_id=admin.id
        )
        await TicketFactory.create(
            store,
            student.id,
            status=TicketStatus.RESOLVED,
            created_at=now - timedelta(hours=3),
            updated_at=now,
        )

        response = await client.get("/api/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "newTickets": 1,
            "inProgress": 1,
            "highPriority": 1,
            "assignedToMe": 1,
            "avgResolution": "3.0h",
        }

    @pytest.mark.asyncio
    async def test_no_resolved_tickets(self, client: AsyncClient, store, student, admin_headers):
        await TicketFactory.create(store, student.id)

        response = await client.get("/api/stats", headers=admin_headers)

        assert response.json()["avgResolution"] == "n/a"

    @pytest.mark.asyncio
    async def test_assigned_to_me_is_per_admin(self, client: AsyncClient, store, student, admin):
        await TicketFactory.create(store, student.id, assigned_to_id=admin.id)
        other_admin = token_headers("admin2", "admin", email="admin2@university.edu")

        response = await client.get("/api/stats", headers=other_admin)

        assert response.json()["assignedToMe"] == 0


class TestStatsAccess:
    @pytest.mark.asyncio
    async def test_unknown_role_forbidden(self, client: AsyncClient):
        response = await client.get("/api/stats", headers=token_headers("ghost", "janitor"))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unauthenticated(self, client: AsyncClient):
        response = await client.get("/api/stats")

        assert response.status_code == 401
