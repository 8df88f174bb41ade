"""
Tests for the backoffice API client.

HTTP is replaced by httpx.MockTransport; the end-to-end tests route the
client's requests into the FastAPI app through the api_client fixture.
"""

import json
import uuid

import httpx
import pytest

from factories import project_payload, repository_payload
from sdlc_backoffice.client import (
    ApiError,
    BackofficeClient,
    ConflictError,
    NotFoundError,
    ResponseError,
    RetryConfig,
    TransportError,
    ValidationError,
)
from sdlc_backoffice.client.errors import TRANSPORT_ERROR_MESSAGE
from sdlc_backoffice.client.retry import calculate_delay

BASE_URL = "http://backoffice.test/api"

NO_WAIT = RetryConfig(max_retries=2, initial_delay=0, jitter=False)

PROJECT_JSON = {
    "id": "8b7f1c7e-2a44-4a59-9d4e-3b1b0f6f5a10",
    "name": "Shop",
    "description": "Online shop backend",
    "scope": "Python",
    "jira_project_key": "SHOP",
    "jira_project_name": "Shop",
    "jira_project_url": "https://company.atlassian.net/projects/SHOP",
    "repositories": [],
    "created_at": "2026-01-05T10:00:00Z",
    "updated_at": "2026-01-05T10:00:00Z",
}


class Recorder:
    """MockTransport handler replaying queued responses and recording requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_client(handler, retry_config: RetryConfig = NO_WAIT) -> BackofficeClient:
    return BackofficeClient(
        BASE_URL,
        timeout=1.0,
        retry_config=retry_config,
        transport=httpx.MockTransport(handler),
    )


class TestClientValidation:
    """Invalid input raises ValidationError and nothing is sent."""

    def test_create_project_blank_field(self):
        recorder = Recorder(httpx.Response(201, json=PROJECT_JSON))
        client = make_client(recorder)

        with pytest.raises(ValidationError) as exc_info:
            client.create_project(project_payload(name=" "))

        assert "name" in exc_info.value.field_errors
        assert recorder.requests == []

    def test_nested_repository_errors_are_keyed_by_path(self):
        recorder = Recorder(httpx.Response(201, json=PROJECT_JSON))
        client = make_client(recorder)

        with pytest.raises(ValidationError) as exc_info:
            client.create_project(
                project_payload(repositories=[repository_payload(url="github.com/x")])
            )

        assert "repositories.0.url" in exc_info.value.field_errors
        assert recorder.requests == []

    def test_update_explicit_null(self):
        recorder = Recorder(httpx.Response(200, json={"message": "ok"}))
        client = make_client(recorder)

        with pytest.raises(ValidationError):
            client.update_project(uuid.uuid4(), {"scope": None})

        assert recorder.requests == []


class TestClientRequests:
    """Request shape for each operation."""

    def test_create_project_defaults_base_branch(self):
        recorder = Recorder(httpx.Response(201, json=PROJECT_JSON))
        client = make_client(recorder)

        project = client.create_project(
            project_payload(repositories=[repository_payload()])
        )

        assert project.jira_project_key == "SHOP"
        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/projects"
        body = json.loads(request.content)
        assert body["repositories"][0]["base_branch"] == "main"

    def test_update_project_sends_only_supplied_fields(self):
        recorder = Recorder(
            httpx.Response(200, json={"message": "Project updated successfully"})
        )
        client = make_client(recorder)
        project_id = uuid.uuid4()

        result = client.update_project(project_id, {"description": "New"})

        assert result.message == "Project updated successfully"
        assert json.loads(recorder.requests[0].content) == {"description": "New"}
        assert recorder.requests[0].url.path == f"/api/projects/{project_id}"

    def test_repository_mutations_carry_project_id(self):
        recorder = Recorder(
            httpx.Response(200, json={"message": "Repository deleted successfully"})
        )
        client = make_client(recorder)
        project_id = uuid.uuid4()

        client.delete_repository(project_id, "abc123")

        request = recorder.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/api/repositories/abc123"
        assert request.url.params["project_id"] == str(project_id)

    def test_list_developments_drops_empty_filters(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        client = make_client(recorder)

        assert client.list_developments(status="failed") == []

        assert dict(recorder.requests[0].url.params) == {"status": "failed"}

    def test_find_project_by_jira_key(self):
        recorder = Recorder(httpx.Response(200, json=PROJECT_JSON))
        client = make_client(recorder)

        project = client.find_project_by_jira_key("SHOP")

        assert str(project.id) == PROJECT_JSON["id"]
        assert recorder.requests[0].url.params["jira_project_key"] == "SHOP"


class TestClientErrors:
    """HTTP failures are classified into client errors."""

    def test_not_found(self):
        client = make_client(
            Recorder(httpx.Response(404, json={"detail": "Project not found: x"}))
        )

        with pytest.raises(NotFoundError) as exc_info:
            client.get_project(uuid.uuid4())

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Project not found: x"

    def test_conflict_names_key(self):
        detail = "Project with JIRA key 'SHOP' already exists"
        client = make_client(Recorder(httpx.Response(409, json={"detail": detail})))

        with pytest.raises(ConflictError) as exc_info:
            client.create_project(project_payload())

        assert "SHOP" in exc_info.value.message

    def test_server_validation(self):
        detail = [
            {"loc": ["body", "jira_project_url"], "msg": "bad url", "type": "value_error"}
        ]
        client = make_client(Recorder(httpx.Response(422, json={"detail": detail})))

        with pytest.raises(ValidationError) as exc_info:
            client.update_project(uuid.uuid4(), {"name": "ok"})

        assert exc_info.value.field_errors == {"jira_project_url": "bad url"}

    def test_server_error_is_generic_transport_error(self):
        client = make_client(
            Recorder(httpx.Response(500, json={"detail": "Internal server error"}))
        )

        with pytest.raises(TransportError) as exc_info:
            client.list_projects()

        assert exc_info.value.message == TRANSPORT_ERROR_MESSAGE
        assert exc_info.value.retryable is False

    def test_unexpected_status(self):
        client = make_client(Recorder(httpx.Response(418, text="teapot")))

        with pytest.raises(ApiError) as exc_info:
            client.list_projects()

        assert type(exc_info.value) is ApiError
        assert exc_info.value.status_code == 418

    def test_non_json_success_body(self):
        handler = Recorder(httpx.Response(200, text="<html>proxy</html>"))
        client = make_client(handler)

        with pytest.raises(ResponseError) as exc_info:
            client.list_projects()

        assert exc_info.value.status_code == 200
        assert "invalid JSON" in exc_info.value.detail
        assert len(handler.requests) == 1

    def test_success_body_with_wrong_shape(self):
        client = make_client(Recorder(httpx.Response(200, json={"id": "nope"})))

        with pytest.raises(ResponseError) as exc_info:
            client.get_development(uuid.uuid4())

        assert isinstance(exc_info.value, ApiError)
        assert "DevelopmentResponse" in exc_info.value.detail

    def test_object_where_list_expected(self):
        client = make_client(Recorder(httpx.Response(200, json=PROJECT_JSON)))

        with pytest.raises(ResponseError) as exc_info:
            client.list_webhook_events()

        assert "expected a list" in exc_info.value.detail

    def test_timeout(self):
        client = make_client(
            Recorder(httpx.ReadTimeout("timed out")),
            RetryConfig(max_retries=0),
        )

        with pytest.raises(TransportError) as exc_info:
            client.list_projects()

        assert exc_info.value.message == TRANSPORT_ERROR_MESSAGE
        assert "timeout" in exc_info.value.cause

    def test_connection_refused(self):
        client = make_client(
            Recorder(httpx.ConnectError("refused")), RetryConfig(max_retries=0)
        )

        with pytest.raises(TransportError):
            client.list_webhook_events()


class TestClientRetry:
    """Reads are retried on transient failures; mutations are not."""

    def test_get_retried_until_success(self):
        recorder = Recorder(
            httpx.Response(503),
            httpx.ConnectError("refused"),
            httpx.Response(200, json=[]),
        )
        client = make_client(recorder)

        assert client.list_projects() == []
        assert len(recorder.requests) == 3

    def test_get_gives_up_after_max_retries(self):
        recorder = Recorder(httpx.Response(502))
        client = make_client(recorder)

        with pytest.raises(TransportError) as exc_info:
            client.list_developments()

        assert exc_info.value.status_code == 502
        assert len(recorder.requests) == 3

    def test_plain_500_not_retried(self):
        recorder = Recorder(httpx.Response(500))
        client = make_client(recorder)

        with pytest.raises(TransportError):
            client.get_development(uuid.uuid4())

        assert len(recorder.requests) == 1

    def test_mutation_sent_once(self):
        recorder = Recorder(httpx.Response(503))
        client = make_client(recorder)

        with pytest.raises(TransportError):
            client.delete_project(uuid.uuid4())

        assert len(recorder.requests) == 1

    def test_calculate_delay_is_capped(self):
        config = RetryConfig(initial_delay=1.0, max_delay=3.0, jitter=False)

        assert calculate_delay(0, config) == 1.0
        assert calculate_delay(1, config) == 2.0
        assert calculate_delay(5, config) == 3.0


class TestClientEndToEnd:
    """Client against the real routes and database."""

    def test_duplicate_create_leaves_first_retrievable(self, live_client: BackofficeClient):
        first = live_client.create_project(project_payload())

        with pytest.raises(ConflictError):
            live_client.create_project(project_payload(name="Second"))

        assert live_client.get_project(first.id) == first

    def test_repository_lifecycle(self, live_client: BackofficeClient):
        project = live_client.create_project(project_payload())

        created = live_client.add_repository(project.id, repository_payload())
        live_client.update_repository(
            project.id, created.repository_id, {"base_branch": "release"}
        )
        repositories = live_client.list_repositories(project.id)

        assert [r.base_branch for r in repositories] == ["release"]

        live_client.delete_project(project.id)
        with pytest.raises(NotFoundError):
            live_client.list_repositories(project.id)
