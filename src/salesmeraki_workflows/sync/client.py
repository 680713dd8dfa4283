"""Async REST client for the workflow API.

Every request carries the session's bearer token when one is available.
Failures surface as :class:`~salesmeraki_workflows.exceptions.ApiError`, with
``is_network_error`` set when no response arrived and ``is_auth_error`` set
for 401 and 403 responses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from salesmeraki_workflows.core.models import Workflow
from salesmeraki_workflows.core.records import (
    Comment,
    StepRecommendation,
    TeamMember,
    WorkflowAbTest,
    WorkflowAnalytics,
    WorkflowExecution,
)
from salesmeraki_workflows.core.types import AbTestStatus, TimeRange
from salesmeraki_workflows.exceptions import ApiError, WorkflowsError
from salesmeraki_workflows.sync.session import active_session

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from salesmeraki_workflows.settings import ClientSettings
    from salesmeraki_workflows.sync.session import SessionProvider

__all__ = ["DEFAULT_BASE_URL", "RECOMMENDATION_PROMPT", "WorkflowApiClient"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "http://localhost:8000/api"
RECOMMENDATION_PROMPT = "Recommend workflow steps based on current configuration"


class WorkflowApiClient:
    """Client for the ``/api/workflows`` and ``/api/ai`` endpoints.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api``.
        session_provider: Source of the bearer token.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, used to target an in-process app.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session_provider: SessionProvider | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.session_provider = session_provider
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        *,
        session_provider: SessionProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> WorkflowApiClient:
        return cls(
            settings.api_base_url,
            session_provider=session_provider,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> WorkflowApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        session = active_session(self.session_provider)
        if session is not None:
            headers["Authorization"] = f"Bearer {session.access_token}"
        return headers

    @staticmethod
    def _error_from(response: httpx.Response) -> ApiError:
        message = f"API request failed with status {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("error") or body.get("detail")
            if detail:
                message = str(detail)
        return ApiError(
            message,
            response.status_code,
            is_auth_error=response.status_code in (401, 403),
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ApiError("API request timed out", is_network_error=True) from e
        except httpx.TransportError as e:
            raise ApiError(f"Network error: {e}", is_network_error=True) from e

        if response.is_error:
            error = self._error_from(response)
            logger.debug("%s %s failed: %s", method, path, error)
            raise error
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("API returned invalid JSON", response.status_code) from e

    async def _get(self, path: str, **params: Any) -> Any:
        return await self._request("GET", path, params=params or None)

    async def _post(self, path: str, data: Any = None) -> Any:
        return await self._request("POST", path, json=data)

    async def _put(self, path: str, data: Any = None) -> Any:
        return await self._request("PUT", path, json=data)

    async def _patch(self, path: str, data: Any = None) -> Any:
        return await self._request("PATCH", path, json=data)

    async def _delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    @staticmethod
    def _parse(parser: Callable[[Any], T], data: Any) -> T:
        try:
            return parser(data)
        except (WorkflowsError, KeyError, TypeError, ValueError, AttributeError) as e:
            raise ApiError(f"API returned an unexpected payload: {e}") from e

    def _parse_list(self, parser: Callable[[Any], T], data: Any) -> list[T]:
        if not isinstance(data, list):
            raise ApiError("API returned an unexpected payload: expected a list")
        return [self._parse(parser, item) for item in data]

    # Workflows

    async def list_workflows(self) -> list[Workflow]:
        return self._parse_list(Workflow.from_dict, await self._get("/workflows"))

    async def get_workflow(self, workflow_id: str) -> Workflow:
        return self._parse(Workflow.from_dict, await self._get(f"/workflows/{workflow_id}"))

    async def create_workflow(self, workflow: Workflow) -> Workflow:
        return self._parse(Workflow.from_dict, await self._post("/workflows", workflow.to_dict()))

    async def update_workflow(self, workflow: Workflow) -> Workflow:
        return self._parse(Workflow.from_dict, await self._put(f"/workflows/{workflow.id}", workflow.to_dict()))

    async def save_workflow(self, workflow: Workflow) -> Workflow:
        """POST workflows without a server id, PUT the rest."""
        if workflow.is_new:
            return await self.create_workflow(workflow)
        return await self.update_workflow(workflow)

    async def delete_workflow(self, workflow_id: str) -> None:
        await self._delete(f"/workflows/{workflow_id}")

    # Executions

    async def execute_workflow(self, workflow_id: str, context: dict[str, Any] | None = None) -> WorkflowExecution:
        data = await self._post(f"/workflows/{workflow_id}/execute", {"context": context or {}})
        return self._parse(WorkflowExecution.from_dict, data)

    async def list_executions(self, workflow_id: str) -> list[WorkflowExecution]:
        return self._parse_list(WorkflowExecution.from_dict, await self._get(f"/workflows/{workflow_id}/executions"))

    # Analytics and collaboration

    async def get_analytics(
        self,
        workflow_id: str | None = None,
        time_range: TimeRange | str = TimeRange.LAST_30_DAYS,
    ) -> WorkflowAnalytics:
        """Workflow-scoped metrics, or the global aggregate when ``workflow_id`` is ``None``."""
        path = f"/workflows/{workflow_id}/analytics" if workflow_id else "/workflows/analytics"
        data = await self._get(path, timeRange=TimeRange(time_range).value)
        return self._parse(WorkflowAnalytics.from_dict, data)

    async def list_comments(self, workflow_id: str) -> list[Comment]:
        return self._parse_list(Comment.from_dict, await self._get(f"/workflows/{workflow_id}/comments"))

    async def add_comment(self, workflow_id: str, content: str) -> Comment:
        data = await self._post(f"/workflows/{workflow_id}/comments", {"content": content})
        return self._parse(Comment.from_dict, data)

    async def list_team(self, workflow_id: str) -> list[TeamMember]:
        return self._parse_list(TeamMember.from_dict, await self._get(f"/workflows/{workflow_id}/team"))

    # A/B tests

    async def list_ab_tests(self, workflow_id: str) -> list[WorkflowAbTest]:
        return self._parse_list(WorkflowAbTest.from_dict, await self._get(f"/workflows/{workflow_id}/tests"))

    async def create_ab_test(self, workflow_id: str, name: str = "") -> WorkflowAbTest:
        payload: dict[str, Any] = {"workflowId": workflow_id}
        if name:
            payload["name"] = name
        return self._parse(WorkflowAbTest.from_dict, await self._post(f"/workflows/{workflow_id}/tests", payload))

    async def get_ab_test(self, workflow_id: str, test_id: str) -> WorkflowAbTest:
        data = await self._get(f"/workflows/{workflow_id}/tests/{test_id}")
        return self._parse(WorkflowAbTest.from_dict, data)

    async def update_ab_test(self, workflow_id: str, test_id: str, **changes: Any) -> WorkflowAbTest:
        """PATCH a test; ``changes`` are sent as given, e.g. ``status="completed"``."""
        data = await self._patch(f"/workflows/{workflow_id}/tests/{test_id}", changes)
        return self._parse(WorkflowAbTest.from_dict, data)

    async def stop_ab_test(self, workflow_id: str, test_id: str) -> WorkflowAbTest:
        return await self.update_ab_test(workflow_id, test_id, status=AbTestStatus.COMPLETED.value)

    async def delete_ab_test(self, workflow_id: str, test_id: str) -> None:
        await self._delete(f"/workflows/{workflow_id}/tests/{test_id}")

    # AI

    async def recommend_steps(self, workflow: Workflow) -> list[StepRecommendation]:
        """Ask the AI endpoint which steps to add next."""
        payload = {
            "prompt": RECOMMENDATION_PROMPT,
            "context": {
                "workflowName": workflow.name,
                "workflowDescription": workflow.description,
                "currentSteps": [step.to_dict() for step in workflow.steps],
            },
            "type": "sales_analysis",
        }
        data = await self._post("/ai", payload)
        recommendations = data.get("recommendations") if isinstance(data, dict) else None
        return self._parse_list(StepRecommendation.from_dict, recommendations or [])
