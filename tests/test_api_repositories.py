"""
Tests for Repository API routes (/api/repositories/{id}?project_id=...).
"""

import uuid

from fastapi.testclient import TestClient

from factories import project_payload
from sdlc_backoffice.models.db import Project


class TestUpdateRepository:
    """Tests for PUT /api/repositories/{repository_id}."""

    def test_update(self, api_client: TestClient, sample_project: Project):
        response = api_client.put(
            "/api/repositories/repo-001",
            params={"project_id": str(sample_project.id)},
            json={"description": "Renamed API", "base_branch": "develop"},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Repository updated successfully"}
        repository = api_client.get(
            f"/api/projects/{sample_project.id}/repositories"
        ).json()[0]
        assert repository["description"] == "Renamed API"
        assert repository["base_branch"] == "develop"
        assert repository["url"] == "https://github.com/example/test-api"

    def test_blank_base_branch_resets_to_main(
        self, api_client: TestClient, sample_project: Project
    ):
        api_client.put(
            "/api/repositories/repo-001",
            params={"project_id": str(sample_project.id)},
            json={"base_branch": "develop"},
        )

        response = api_client.put(
            "/api/repositories/repo-001",
            params={"project_id": str(sample_project.id)},
            json={"base_branch": ""},
        )

        assert response.status_code == 200
        repository = api_client.get(
            f"/api/projects/{sample_project.id}/repositories"
        ).json()[0]
        assert repository["base_branch"] == "main"

    def test_missing_project_id(self, api_client: TestClient, sample_project: Project):
        response = api_client.put(
            "/api/repositories/repo-001", json={"description": "x"}
        )

        assert response.status_code == 422

    def test_blank_token_rejected(self, api_client: TestClient, sample_project: Project):
        response = api_client.put(
            "/api/repositories/repo-001",
            params={"project_id": str(sample_project.id)},
            json={"git_access_token": " "},
        )

        assert response.status_code == 422

    def test_wrong_project(self, api_client: TestClient, sample_project: Project):
        other = api_client.post("/api/projects", json=project_payload("OTHER")).json()

        response = api_client.put(
            "/api/repositories/repo-001",
            params={"project_id": other["id"]},
            json={"description": "hijack"},
        )

        assert response.status_code == 404
        repository = api_client.get(
            f"/api/projects/{sample_project.id}/repositories"
        ).json()[0]
        assert repository["description"] == "Test API"

    def test_unknown_repository(self, api_client: TestClient, sample_project: Project):
        response = api_client.put(
            "/api/repositories/missing",
            params={"project_id": str(sample_project.id)},
            json={"description": "x"},
        )

        assert response.status_code == 404


class TestDeleteRepository:
    """Tests for DELETE /api/repositories/{repository_id}."""

    def test_delete(self, api_client: TestClient, sample_project: Project):
        response = api_client.delete(
            "/api/repositories/repo-001",
            params={"project_id": str(sample_project.id)},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Repository deleted successfully"}
        assert api_client.get(
            f"/api/projects/{sample_project.id}/repositories"
        ).json() == []

    def test_missing_project_id(self, api_client: TestClient, sample_project: Project):
        assert api_client.delete("/api/repositories/repo-001").status_code == 422

    def test_unknown_project(self, api_client: TestClient, sample_project: Project):
        response = api_client.delete(
            "/api/repositories/repo-001", params={"project_id": str(uuid.uuid4())}
        )

        assert response.status_code == 404
