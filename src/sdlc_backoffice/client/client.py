"""
HTTP client for the SDLC Backoffice API.

Wraps every CRUD operation of the API in a typed method. Request bodies are
validated with the same schemas the server uses, so invalid input raises
ValidationError without a request being sent. Responses are parsed into the
API response models; failures are classified into the errors in
sdlc_backoffice.client.errors.
"""

import logging
from typing import Any, Optional, Type, TypeVar, Union
from uuid import UUID

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sdlc_backoffice.api.schemas import (
    DevelopmentResponse,
    MessageResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    RepositoryCreate,
    RepositoryCreatedResponse,
    RepositoryResponse,
    RepositoryUpdate,
    WebhookEventResponse,
)
from sdlc_backoffice.client.errors import (
    ApiError,
    ConflictError,
    NotFoundError,
    ResponseError,
    TransportError,
    ValidationError,
)
from sdlc_backoffice.client.retry import RetryConfig, with_retry
from sdlc_backoffice.config import settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

Identifier = Union[UUID, str]
Payload = Union[BaseModel, dict[str, Any]]


def _field_errors(e: PydanticValidationError) -> dict[str, str]:
    """Flatten pydantic errors into {field: message}."""
    errors: dict[str, str] = {}
    for error in e.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, error["msg"])
    return errors


def _validate(schema: Type[M], payload: Payload) -> M:
    """Validate a request body locally. Raises ValidationError, sends nothing."""
    if isinstance(payload, BaseModel):
        data = payload.model_dump(exclude_unset=True)
    else:
        data = payload
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_field_errors(e)) from e


def _parse(schema: Type[M], data: Any) -> M:
    """Parse a response body into its model. Raises ResponseError on mismatch."""
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(f"Unexpected {schema.__name__} body: {e.error_count()} errors")
        raise ResponseError(str(e)) from e


def _parse_list(schema: Type[M], data: Any) -> list[M]:
    if not isinstance(data, list):
        raise ResponseError(
            f"expected a list of {schema.__name__}, got {type(data).__name__}"
        )
    return [_parse(schema, item) for item in data]


def _detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "detail" in body:
        return body["detail"]
    return body


def check_response(response: httpx.Response, config: RetryConfig) -> None:
    """
    Raise the client error matching a non-success response.

    Args:
        response: HTTP response to check
        config: Retry configuration deciding which 5xx are retryable

    Raises:
        NotFoundError: HTTP 404
        ConflictError: HTTP 409
        ValidationError: HTTP 422
        TransportError: HTTP 5xx
        ApiError: Any other non-success status
    """
    if response.is_success:
        return

    status_code = response.status_code
    detail = _detail(response)

    if status_code == 404:
        raise NotFoundError(str(detail), status_code)
    if status_code == 409:
        raise ConflictError(str(detail), status_code)
    if status_code == 422:
        if isinstance(detail, list):
            errors = {
                ".".join(str(p) for p in item.get("loc", [])[1:])
                or "body": item.get("msg", "")
                for item in detail
                if isinstance(item, dict)
            }
        else:
            errors = {"body": str(detail)}
        raise ValidationError(errors, status_code)
    if status_code >= 500:
        raise TransportError(
            status_code=status_code,
            retryable=status_code in config.retryable_status_codes,
            cause=f"HTTP {status_code}",
        )
    raise ApiError(f"HTTP {status_code}: {detail}", status_code)


class BackofficeClient:
    """
    Synchronous client for the backoffice API.

    Example:
        with BackofficeClient() as client:
            for project in client.list_projects():
                print(project.jira_project_key)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API base URL including /api (defaults to BACKOFFICE_API_URL)
            timeout: Request timeout in seconds
            retry_config: Retry behavior for read requests
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (base_url or settings.backoffice_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self.retry_config = retry_config or RetryConfig(
            max_retries=settings.api_max_retries
        )
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "BackofficeClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ===== Transport =====

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self.client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise TransportError(cause=f"timeout: {e}") from e
        except httpx.RequestError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(cause=f"network error: {e}") from e

        check_response(response, self.retry_config)
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {path} returned a non-JSON body")
            raise ResponseError(f"invalid JSON: {e}", response.status_code) from e

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return with_retry(self.retry_config)(self._send)("GET", path, params=params)

    # ===== Projects =====

    def list_projects(self) -> list[ProjectResponse]:
        """List all projects with their repositories."""
        return _parse_list(ProjectResponse, self._get("/projects"))

    def find_project_by_jira_key(self, jira_project_key: str) -> ProjectResponse:
        """
        Get the project using a tracker key.

        Raises:
            NotFoundError: If no project uses the key
        """
        data = self._get("/projects", params={"jira_project_key": jira_project_key})
        return _parse(ProjectResponse, data)

    def get_project(self, project_id: Identifier) -> ProjectResponse:
        return _parse(ProjectResponse, self._get(f"/projects/{project_id}"))


    def create_project(self, payload: Payload) -> ProjectResponse:
        """
        Create a project.

        Raises:
            ValidationError: If the payload is invalid (nothing is sent)
            ConflictError: If the tracker key is already used
        """
        body = _validate(ProjectCreate, payload)
        data = self._send("POST", "/projects", json=body.model_dump(mode="json"))
        return _parse(ProjectResponse, data)

    def update_project(self, project_id: Identifier, payload: Payload) -> MessageResponse:
        """Partially update a project. Only the supplied fields are sent."""
        body = _validate(ProjectUpdate, payload)
        data = self._send(
            "PUT",
            f"/projects/{project_id}",
            json=body.model_dump(mode="json", exclude_unset=True),
        )
        return _parse(MessageResponse, data)

    def delete_project(self, project_id: Identifier) -> MessageResponse:
        return _parse(MessageResponse, self._send("DELETE", f"/projects/{project_id}"))


    # ===== Repositories =====

    def list_repositories(self, project_id: Identifier) -> list[RepositoryResponse]:
        data = self._get(f"/projects/{project_id}/repositories")
        return _parse_list(RepositoryResponse, data)

    def add_repository(
        self, project_id: Identifier, payload: Payload
    ) -> RepositoryCreatedResponse:
        """Add a repository to a project. base_branch defaults to main."""
        body = _validate(RepositoryCreate, payload)
        data = self._send(
            "POST",
            f"/projects/{project_id}/repositories",
            json=body.model_dump(mode="json"),
        )
        return _parse(RepositoryCreatedResponse, data)

    def update_repository(
        self, project_id: Identifier, repository_id: str, payload: Payload
    ) -> MessageResponse:
        body = _validate(RepositoryUpdate, payload)
        data = self._send(
            "PUT",
            f"/repositories/{repository_id}",
            params={"project_id": str(project_id)},
            json=body.model_dump(mode="json", exclude_unset=True),
        )
        return _parse(MessageResponse, data)

    def delete_repository(
        self, project_id: Identifier, repository_id: str
    ) -> MessageResponse:
        data = self._send(
            "DELETE",
            f"/repositories/{repository_id}",
            params={"project_id": str(project_id)},
        )
        return _parse(MessageResponse, data)

    # ===== Developments =====

    def list_developments(
        self,
        jira_project_key: Optional[str] = None,
        project_id: Optional[Identifier] = None,
        status: Optional[str] = None,
    ) -> list[DevelopmentResponse]:
        """List developments, newest first, optionally filtered."""
        data = self._get(
            "/developments",
            params={
                "jira_project_key": jira_project_key,
                "project_id": str(project_id) if project_id else None,
                "status": status,
            },
        )
        return _parse_list(DevelopmentResponse, data)

    def get_development(self, development_id: Identifier) -> DevelopmentResponse:
        return _parse(DevelopmentResponse, self._get(f"/developments/{development_id}"))


    # ===== Webhook events =====

    def list_webhook_events(
        self, jira_project_key: Optional[str] = None
    ) -> list[WebhookEventResponse]:
        """List webhook events, most recently received first."""
        data = self._get(
            "/webhook-events", params={"jira_project_key": jira_project_key}
        )
        return _parse_list(WebhookEventResponse, data)

    def get_webhook_event(self, event_id: Identifier) -> WebhookEventResponse:
        return _parse(WebhookEventResponse, self._get(f"/webhook-events/{event_id}"))

