"""
Integration tests for ticket comments.

WHY: Internal notes must never reach students, whatever the UI does, so
the filtering is verified at the HTTP boundary.
"""

import pytest
from httpx import AsyncClient

from tests.factories import CommentFactory, TicketFactory


class TestAddComment:
    """POST /api/tickets/{id}/comments"""

    @pytest.mark.asyncio
    async def test_submitter_comments(self, client: AsyncClient, store, student, student_headers):
        ticket = await TicketFactory.create(store, student.id)

        response = await client.post(
            f"/api/tickets/{ticket.id}/comments",
            headers=student_headers,
            json={"comment": "Still jammed after restart"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["ticketId"] == ticket.id
        assert data["userId"] == student.id
        assert data["isInternal"] is False
        assert data["user"]["id"] == student.id

    @pytest.mark.asyncio
    async def test_student_cannot_post_internal(self, client: AsyncClient, store, student, student_headers):
        ticket = await TicketFactory.create(store, student.id)

        response = await client.post(
            f"/api/tickets/{ticket.id}/comments",
            headers=student_headers,
            json={"comment": "psst", "isInternal": True},
        )

        assert response.status_code == 403
        assert await store.list_comments(ticket.id) == []

    @pytest.mark.asyncio
    async def test_admin_posts_internal(self, client: AsyncClient, store, student, admin_headers):
        ticket = await TicketFactory.create(store, student.id)

        response = await client.post(
            f"/api/tickets/{ticket.id}/comments",
            headers=admin_headers,
            json={"comment": "Ordered a new roller", "isInternal": True},
        )

        assert response.status_code == 201
        assert response.json()["isInternal"] is True

    @pytest.mark.asyncio
    async def test_empty_comment(self, client: AsyncClient, store, student, student_headers):
        ticket = await TicketFactory.create(store, student.id)

        response = await client.post(
            f"/api/tickets/{ticket.id}/comments", headers=student_headers, json={"comment": "  "}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_other_student_forbidden(self, client: AsyncClient, store, student, other_student_headers):
        ticket = await TicketFactory.create(store, student.id)

        response = await client.post(
            f"/api/tickets/{ticket.id}/comments", headers=other_student_headers, json={"comment": "hi"}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_ticket(self, client: AsyncClient, student_headers):
        response = await client.post(
            "/api/tickets/9999/comments", headers=student_headers, json={"comment": "hi"}
        )

        assert response.status_code == 404


class TestListComments:
    """GET /api/tickets/{id}/comments"""

    @pytest.mark.asyncio
    async def test_internal_filtered_for_student(
        self, client: AsyncClient, store, student, admin, student_headers, admin_headers
    ):
        ticket = await TicketFactory.create(store, student.id)
        public = await CommentFactory.create(store, ticket.id, admin.id, comment="Technician on the way")
        internal = await CommentFactory.create(
            store, ticket.id, admin.id, comment="Third jam this week", is_internal=True
        )

        student_view = await client.get(f"/api/tickets/{ticket.id}/comments", headers=student_headers)
        admin_view = await client.get(f"/api/tickets/{ticket.id}/comments", headers=admin_headers)

        assert [c["id"] for c in student_view.json()] == [public.id]
        assert "Third jam" not in student_view.text
        assert {c["id"] for c in admin_view.json()} == {public.id, internal.id}

    @pytest.mark.asyncio
    async def test_other_student_forbidden(self, client: AsyncClient, store, student, other_student_headers):
        ticket = await TicketFactory.create(store, student.id)

        response = await client.get(f"/api/tickets/{ticket.id}/comments", headers=other_student_headers)

        assert response.status_code == 403
