"""REST API controllers for the workflow service.

- WorkflowController: CRUD, execution, analytics and collaboration endpoints
- AbTestController: A/B tests scoped to one workflow
- AiController: step recommendations for the builder
- health: unauthenticated health check
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, ClassVar

from litestar import Controller, Request, delete, get, patch, post, put
from litestar.exceptions import ValidationException
from litestar.params import QueryParameter
from litestar.status_codes import HTTP_200_OK

from salesmeraki_workflows.core.catalog import suggest_steps
from salesmeraki_workflows.core.models import Workflow, WorkflowStep
from salesmeraki_workflows.core.records import TeamMember  # noqa: TC001 - needed for request typing
from salesmeraki_workflows.core.types import TimeRange
from salesmeraki_workflows.exceptions import WorkflowsError
from salesmeraki_workflows.web.dto import (
    AbTestUpdateDTO,
    CommentCreateDTO,
    ExecuteWorkflowDTO,
    RecommendationRequestDTO,
)
from salesmeraki_workflows.web.repository import WorkflowRepository  # noqa: TC001 - needed for DI

__all__ = ["AbTestController", "AiController", "WorkflowController", "health"]

logger = logging.getLogger(__name__)


def _parse_workflow(data: dict[str, Any]) -> Workflow:
    try:
        return Workflow.from_dict(data)
    except (WorkflowsError, KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationException(detail=f"Invalid workflow: {e}") from e


class WorkflowController(Controller):
    """API controller for workflows and their side records.

    Tags: Workflows
    """

    path = "/workflows"
    tags: ClassVar[list[str]] = ["Workflows"]

    @get("/")
    async def list_workflows(self, workflow_repository: WorkflowRepository) -> list[dict[str, Any]]:
        """List every stored workflow."""
        return [workflow.to_dict() for workflow in workflow_repository.list_workflows()]

    @post("/")
    async def create_workflow(self, data: dict[str, Any], workflow_repository: WorkflowRepository) -> dict[str, Any]:
        """Create a workflow.

        The server assigns the id and the timestamps and renumbers step
        positions.

        Args:
            data: Workflow document.
            workflow_repository: Injected repository.

        Returns:
            The stored workflow.

        Raises:
            ValidationException: If the document cannot be parsed.
            WorkflowValidationError: If the workflow breaks a save-time rule.
        """
        return workflow_repository.create(_parse_workflow(data)).to_dict()

    @get("/analytics")
    async def get_global_analytics(
        self,
        workflow_repository: WorkflowRepository,
        time_range: Annotated[
            TimeRange, QueryParameter(name="timeRange", description="Aggregation window: 7d, 30d, 90d or all")
        ] = TimeRange.LAST_30_DAYS,
    ) -> dict[str, Any]:
        """Aggregate execution metrics across all workflows."""
        return workflow_repository.analytics(None, time_range).to_dict()

    @get("/{workflow_id:str}")
    async def get_workflow(self, workflow_id: str, workflow_repository: WorkflowRepository) -> dict[str, Any]:
        """Get one workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
        """
        return workflow_repository.get(workflow_id).to_dict()

    @put("/{workflow_id:str}")
    async def update_workflow(
        self,
        workflow_id: str,
        data: dict[str, Any],
        workflow_repository: WorkflowRepository,
    ) -> dict[str, Any]:
        """Replace a workflow and stamp a fresh ``updatedAt``.

        The id in the path wins over any id in the body.
        """
        return workflow_repository.update(workflow_id, _parse_workflow(data)).to_dict()

    @delete("/{workflow_id:str}", status_code=HTTP_200_OK)
    async def delete_workflow(self, workflow_id: str, workflow_repository: WorkflowRepository) -> dict[str, bool]:
        """Delete a workflow."""
        workflow_repository.delete(workflow_id)
        return {"success": True}

    @post("/{workflow_id:str}/execute")
    async def execute_workflow(
        self,
        workflow_id: str,
        data: ExecuteWorkflowDTO,
        workflow_repository: WorkflowRepository,
    ) -> dict[str, Any]:
        """Run a workflow with the given context and return the execution record."""
        execution = workflow_repository.execute(workflow_id, data.context)
        logger.info("Executed workflow %s: %s", workflow_id, execution.status)
        return execution.to_dict()

    @get("/{workflow_id:str}/executions")
    async def list_executions(
        self, workflow_id: str, workflow_repository: WorkflowRepository
    ) -> list[dict[str, Any]]:
        return [execution.to_dict() for execution in workflow_repository.list_executions(workflow_id)]

    @get("/{workflow_id:str}/analytics")
    async def get_analytics(
        self,
        workflow_id: str,
        workflow_repository: WorkflowRepository,
        time_range: Annotated[
            TimeRange, QueryParameter(name="timeRange", description="Aggregation window: 7d, 30d, 90d or all")
        ] = TimeRange.LAST_30_DAYS,
    ) -> dict[str, Any]:
        """Execution metrics for one workflow."""
        return workflow_repository.analytics(workflow_id, time_range).to_dict()

    @get("/{workflow_id:str}/comments")
    async def list_comments(self, workflow_id: str, workflow_repository: WorkflowRepository) -> list[dict[str, Any]]:
        return [comment.to_dict() for comment in workflow_repository.list_comments(workflow_id)]

    @post("/{workflow_id:str}/comments")
    async def add_comment(
        self,
        workflow_id: str,
        data: CommentCreateDTO,
        request: Request[TeamMember, str, Any],
        workflow_repository: WorkflowRepository,
    ) -> dict[str, Any]:
        """Post a comment as the authenticated user."""
        return workflow_repository.add_comment(workflow_id, data.content, request.user).to_dict()

    @get("/{workflow_id:str}/team")
    async def list_team(self, workflow_id: str, workflow_repository: WorkflowRepository) -> list[dict[str, Any]]:
        return [member.to_dict() for member in workflow_repository.team(workflow_id)]


class AbTestController(Controller):
    """A/B tests of one workflow.

    Tags: A/B Tests
    """

    path = "/workflows/{workflow_id:str}/tests"
    tags: ClassVar[list[str]] = ["A/B Tests"]

    @get("/")
    async def list_tests(self, workflow_id: str, workflow_repository: WorkflowRepository) -> list[dict[str, Any]]:
        return [test.to_dict() for test in workflow_repository.list_ab_tests(workflow_id)]

    @post("/")
    async def create_test(
        self,
        workflow_id: str,
        data: dict[str, Any],
        workflow_repository: WorkflowRepository,
    ) -> dict[str, Any]:
        """Start a test of the workflow against a copy of itself.

        The body may carry a ``name``; a ``workflowId`` in the body is ignored
        in favour of the path.
        """
        name = data.get("name") or ""
        if not isinstance(name, str):
            raise ValidationException(detail="Test name must be a string")
        return workflow_repository.create_ab_test(workflow_id, name).to_dict()

    @get("/{test_id:str}")
    async def get_test(
        self, workflow_id: str, test_id: str, workflow_repository: WorkflowRepository
    ) -> dict[str, Any]:
        """Get one test.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist.
            AbTestNotFoundError: If the workflow has no such test.
        """
        return workflow_repository.get_ab_test(workflow_id, test_id).to_dict()

    @patch("/{test_id:str}")
    async def update_test(
        self,
        workflow_id: str,
        test_id: str,
        data: AbTestUpdateDTO,
        workflow_repository: WorkflowRepository,
    ) -> dict[str, Any]:
        """Rename, stop or decide a test.

        ``{"status": "completed"}`` stops a running test.
        """
        test = workflow_repository.update_ab_test(
            workflow_id, test_id, name=data.name, status=data.status, winner=data.winner
        )
        return test.to_dict()

    @delete("/{test_id:str}", status_code=HTTP_200_OK)
    async def delete_test(
        self, workflow_id: str, test_id: str, workflow_repository: WorkflowRepository
    ) -> dict[str, bool]:
        workflow_repository.delete_ab_test(workflow_id, test_id)
        return {"success": True}


class AiController(Controller):
    """Step recommendations for the builder.

    Suggestions cover the recommended step kinds the workflow does not use
    yet. Unreadable steps in the request are ignored.
    """

    path = "/ai"
    tags: ClassVar[list[str]] = ["AI"]

    @post("/", status_code=HTTP_200_OK)
    async def recommend(self, data: RecommendationRequestDTO) -> dict[str, Any]:
        steps = []
        for raw in data.context.get("currentSteps") or []:
            try:
                steps.append(WorkflowStep.from_dict(raw))
            except (WorkflowsError, KeyError, TypeError, ValueError, AttributeError):
                logger.debug("Ignoring unreadable step in recommendation request: %r", raw)
        return {"recommendations": [recommendation.to_dict() for recommendation in suggest_steps(steps)]}


@get("/health", exclude_from_auth=True, tags=["Health"])
async def health() -> dict[str, str]:
    """Health check."""
    return {"status": "ok"}
