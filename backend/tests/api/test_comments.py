"""
Worknest - Comments & Attachments API Tests
===========================================
"""

from pathlib import Path
from uuid import uuid4

import pytest_asyncio
from httpx import AsyncClient

from worknest.core.config import Settings
from worknest.core.models import Project


@pytest_asyncio.fixture
async def ticket(client: AsyncClient, auth_headers: dict, project: Project) -> dict:
    response = await client.post(
        "/api/tickets",
        headers=auth_headers,
        json={"project_id": str(project.id), "title": "Needs discussion", "ticket_type": "Task"},
    )
    return response.json()


class TestComments:
    """Tests for comment endpoints."""

    async def test_add_and_list(self, client: AsyncClient, auth_headers: dict, ticket: dict):
        for content in ("First", "Second"):
            response = await client.post(
                f"/api/tickets/{ticket['id']}/comments",
                headers=auth_headers,
                json={"content": content},
            )
            assert response.status_code == 201

        response = await client.get(f"/api/tickets/{ticket['id']}/comments", headers=auth_headers)

        assert response.status_code == 200
        assert [c["content"] for c in response.json()] == ["First", "Second"]

    async def test_blank_comment(self, client: AsyncClient, auth_headers: dict, ticket: dict):
        response = await client.post(
            f"/api/tickets/{ticket['id']}/comments",
            headers=auth_headers,
            json={"content": "   "},
        )

        assert response.status_code == 400

    async def test_comment_on_missing_ticket(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            f"/api/tickets/{uuid4()}/comments",
            headers=auth_headers,
            json={"content": "Hello"},
        )

        assert response.status_code == 404

    async def test_edit_and_delete(self, client: AsyncClient, auth_headers: dict, ticket: dict):
        created = await client.post(
            f"/api/tickets/{ticket['id']}/comments",
            headers=auth_headers,
            json={"content": "Typo"},
        )
        comment_id = created.json()["id"]

        edited = await client.put(
            f"/api/comments/{comment_id}",
            headers=auth_headers,
            json={"content": "Fixed"},
        )
        assert edited.status_code == 200
        assert edited.json()["content"] == "Fixed"

        deleted = await client.delete(f"/api/comments/{comment_id}", headers=auth_headers)
        assert deleted.status_code == 204

        listed = await client.get(f"/api/tickets/{ticket['id']}/comments", headers=auth_headers)
        assert listed.json() == []


class TestAttachments:
    """Tests for attachment metadata endpoints."""

    async def test_record_and_delete_removes_file(
        self, client: AsyncClient, auth_headers: dict, ticket: dict, settings: Settings
    ):
        upload_dir = Path(settings.UPLOAD_DIR)
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / "trace.log").write_text("stack trace")

        created = await client.post(
            f"/api/tickets/{ticket['id']}/attachments",
            headers=auth_headers,
            json={
                "filename": "trace.log",
                "file_size": 11,
                "mime_type": "text/plain",
                "storage_path": "trace.log",
            },
        )
        assert created.status_code == 201
        data = created.json()
        assert data["filename"] == "trace.log"
        assert "storage_path" not in data

        listed = await client.get(f"/api/tickets/{ticket['id']}/attachments", headers=auth_headers)
        assert [a["id"] for a in listed.json()] == [data["id"]]

        deleted = await client.delete(f"/api/attachments/{data['id']}", headers=auth_headers)
        assert deleted.status_code == 204
        assert not (upload_dir / "trace.log").exists()

    async def test_delete_with_missing_file(self, client: AsyncClient, auth_headers: dict, ticket: dict):
        created = await client.post(
            f"/api/tickets/{ticket['id']}/attachments",
            headers=auth_headers,
            json={"filename": "gone.bin", "file_size": 5, "storage_path": "gone.bin"},
        )

        deleted = await client.delete(f"/api/attachments/{created.json()['id']}", headers=auth_headers)

        assert deleted.status_code == 204

    async def test_oversized_attachment(self, client: AsyncClient, auth_headers: dict, ticket: dict):
        response = await client.post(
            f"/api/tickets/{ticket['id']}/attachments",
            headers=auth_headers,
            json={"filename": "huge.iso", "file_size": 100 * 1024 * 1024 + 1, "storage_path": "huge.iso"},
        )

        assert response.status_code == 400

    async def test_path_outside_upload_dir(self, client: AsyncClient, auth_headers: dict, ticket: dict):
        response = await client.post(
            f"/api/tickets/{ticket['id']}/attachments",
            headers=auth_headers,
            json={"filename": "passwd", "file_size": 5, "storage_path": "../../etc/passwd"},
        )

        assert response.status_code == 400

    async def test_delete_missing_attachment(self, client: AsyncClient, auth_headers: dict):
        response = await client.delete(f"/api/attachments/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    async def test_ticket_and_project_delete_remove_files(
        self, client: AsyncClient, auth_headers: dict, project: Project, ticket: dict, settings: Settings
    ):
        upload_dir = Path(settings.UPLOAD_DIR)
        upload_dir.mkdir(parents=True, exist_ok=True)
        second = await client.post(
            "/api/tickets",
            headers=auth_headers,
            json={"project_id": str(project.id), "title": "Second", "ticket_type": "Task"},
        )
        for ticket_id, name in ((ticket["id"], "first.txt"), (second.json()["id"], "second.txt")):
            (upload_dir / name).write_text("data")
            await client.post(
                f"/api/tickets/{ticket_id}/attachments",
                headers=auth_headers,
                json={"filename": name, "file_size": 4, "storage_path": name},
            )

        deleted = await client.delete(f"/api/tickets/{ticket['id']}", headers=auth_headers)
        assert deleted.status_code == 204
        assert not (upload_dir / "first.txt").exists()
        assert (upload_dir / "second.txt").exists()

        deleted = await client.delete(f"/api/projects/{project.id}", headers=auth_headers)
        assert deleted.status_code == 204
        assert not (upload_dir / "second.txt").exists()
