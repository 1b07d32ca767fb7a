"""
Integration tests for the IT staff directory.
"""

import pytest
from httpx import AsyncClient

from tests.factories import UserFactory


class TestListStaff:
    """GET /api/it-staff"""

    @pytest.mark.asyncio
    async def test_admin_lists_staff(self, client: AsyncClient, store, student, admin, admin_headers):
        await UserFactory.create_admin(store, id="admin2", email="admin2@university.edu")

        response = await client.get("/api/it-staff", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert {u["id"] for u in data} == {"admin1", "admin2"}
        assert all(u["role"] == "admin" for u in data)

    @pytest.mark.asyncio
    async def test_student_forbidden(self, client: AsyncClient, student_headers):
        response = await client.get("/api/it-staff", headers=student_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "ForbiddenError"
