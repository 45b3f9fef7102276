"""
Worknest - Projects API Tests
=============================
"""

from uuid import uuid4

from httpx import AsyncClient

from worknest.core.models import Project


class TestProjectCrud:
    """Tests for project endpoints."""

    async def test_create_project(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/projects",
            headers=auth_headers,
            json={"name": "Apollo", "description": "Moon", "color": "#ff0000"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Apollo"
        assert data["archived"] is False
        assert data["created_at"]

    async def test_create_project_blank_name(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/projects", headers=auth_headers, json={"name": "  "})

        assert response.status_code == 400

    async def test_list_projects(self, client: AsyncClient, auth_headers: dict, project: Project):
        response = await client.get("/api/projects", headers=auth_headers)

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [str(project.id)]

    async def test_get_missing_project(self, client: AsyncClient, auth_headers: dict):
        response = await client.get(f"/api/projects/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Project not found"}

    async def test_malformed_id(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/projects/not-a-uuid", headers=auth_headers)

        assert response.status_code == 400

    async def test_partial_update(self, client: AsyncClient, auth_headers: dict, project: Project):
        response = await client.put(
            f"/api/projects/{project.id}",
            headers=auth_headers,
            json={"archived": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["archived"] is True
        assert data["name"] == project.name
        assert data["description"] == project.description

    async def test_patch_alias(self, client: AsyncClient, auth_headers: dict, project: Project):
        response = await client.patch(
            f"/api/projects/{project.id}",
            headers=auth_headers,
            json={"name": "Renamed"},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    async def test_delete_project(self, client: AsyncClient, auth_headers: dict, project: Project):
        response = await client.delete(f"/api/projects/{project.id}", headers=auth_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/projects/{project.id}", headers=auth_headers)
        assert response.status_code == 404

    async def test_delete_missing_project(self, client: AsyncClient, auth_headers: dict):
        response = await client.delete(f"/api/projects/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    async def test_project_tickets(self, client: AsyncClient, auth_headers: dict, project: Project):
        for title in ("One", "Two"):
            await client.post(
                "/api/tickets",
                headers=auth_headers,
                json={"project_id": str(project.id), "title": title, "ticket_type": "Task"},
            )

        response = await client.get(f"/api/projects/{project.id}/tickets", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        assert [t["title"] for t in response.json()] == ["Two", "One"]

    async def test_archive_and_unarchive(self, client: AsyncClient, auth_headers: dict, project: Project):
        archived = await client.post(f"/api/projects/{project.id}/archive", headers=auth_headers)
        assert archived.status_code == 200
        assert archived.json()["archived"] is True

        listed = await client.get("/api/projects?archived=false", headers=auth_headers)
        assert listed.json() == []

        restored = await client.post(f"/api/projects/{project.id}/unarchive", headers=auth_headers)
        assert restored.json()["archived"] is False
