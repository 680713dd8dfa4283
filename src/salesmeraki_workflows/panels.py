"""Read-mostly panels shown next to the workflow list.

The panels move through :class:`~salesmeraki_workflows.core.types.PanelState`
and keep the message the view would show for the current state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from salesmeraki_workflows.core.types import PanelState, TimeRange
from salesmeraki_workflows.exceptions import ApiError

if TYPE_CHECKING:
    from salesmeraki_workflows.core.records import Comment, TeamMember, WorkflowAbTest, WorkflowAnalytics
    from salesmeraki_workflows.sync.client import WorkflowApiClient

__all__ = ["AbTestPanel", "AnalyticsPanel", "CollaborationPanel"]

logger = logging.getLogger(__name__)


class AnalyticsPanel:
    """Execution metrics for one workflow, or for all workflows.

    Args:
        client: REST client.
        workflow_id: Workflow to report on; ``None`` selects the global aggregate.
        time_range: Aggregation window.
    """

    LOADING_MESSAGE = "Loading analytics..."
    ERROR_MESSAGE = "Failed to load analytics data"
    EMPTY_MESSAGE = "No analytics data available"

    def __init__(
        self,
        client: WorkflowApiClient,
        workflow_id: str | None = None,
        time_range: TimeRange | str = TimeRange.LAST_30_DAYS,
    ) -> None:
        self.client = client
        self.workflow_id = workflow_id
        self.time_range = TimeRange(time_range)
        self.state = PanelState.IDLE
        self.metrics: WorkflowAnalytics | None = None
        self.error: str | None = None

    @property
    def message(self) -> str | None:
        return {
            PanelState.LOADING: self.LOADING_MESSAGE,
            PanelState.ERROR: self.ERROR_MESSAGE,
            PanelState.EMPTY: self.EMPTY_MESSAGE,
        }.get(self.state)

    async def refresh(self, time_range: TimeRange | str | None = None) -> PanelState:
        """Fetch metrics, optionally switching the window first."""
        if time_range is not None:
            self.time_range = TimeRange(time_range)
        self.state = PanelState.LOADING
        self.error = None
        try:
            self.metrics = await self.client.get_analytics(self.workflow_id, self.time_range)
        except ApiError as e:
            logger.warning("Could not load analytics for %s: %s", self.workflow_id or "all workflows", e)
            self.metrics = None
            self.error = str(e)
            self.state = PanelState.ERROR
        else:
            self.state = PanelState.EMPTY if self.metrics.is_empty else PanelState.READY
        return self.state


class CollaborationPanel:
    """Team members and the comment thread of one workflow."""

    ERROR_MESSAGE = "Failed to load collaboration data"
    EMPTY_MESSAGE = "No comments yet"

    def __init__(self, client: WorkflowApiClient, workflow_id: str) -> None:
        self.client = client
        self.workflow_id = workflow_id
        self.state = PanelState.IDLE
        self.team: list[TeamMember] = []
        self.comments: list[Comment] = []
        self.error: str | None = None

    async def refresh(self) -> PanelState:
        self.state = PanelState.LOADING
        self.error = None
        try:
            self.team = await self.client.list_team(self.workflow_id)
            self.comments = await self.client.list_comments(self.workflow_id)
        except ApiError as e:
            logger.warning("Could not load collaboration data for %s: %s", self.workflow_id, e)
            self.error = str(e)
            self.state = PanelState.ERROR
        else:
            self.state = PanelState.READY if self.comments else PanelState.EMPTY
        return self.state

    async def add_comment(self, content: str) -> Comment | None:
        """Post a comment and append it once the server accepts it.

        Blank input is ignored. A failed post records :attr:`error` and leaves
        the thread unchanged.
        """
        if not content.strip():
            return None
        try:
            comment = await self.client.add_comment(self.workflow_id, content.strip())
        except ApiError as e:
            logger.warning("Could not post comment on %s: %s", self.workflow_id, e)
            self.error = str(e)
            return None
        self.comments.append(comment)
        self.state = PanelState.READY
        return comment


class AbTestPanel:
    """A/B tests of one workflow, with create and stop actions.

    Args:
        client: REST client.
        workflow_id: Workflow whose tests are shown.
    """

    ERROR_MESSAGE = "Failed to load tests"
    EMPTY_MESSAGE = "No tests created yet."
    CREATE_LABEL = "Create New Test"
    CREATING_LABEL = "Creating..."

    def __init__(self, client: WorkflowApiClient, workflow_id: str) -> None:
        self.client = client
        self.workflow_id = workflow_id
        self.state = PanelState.IDLE
        self.tests: list[WorkflowAbTest] = []
        self.creating = False
        self.error: str | None = None

    @property
    def message(self) -> str | None:
        return {PanelState.ERROR: self.ERROR_MESSAGE, PanelState.EMPTY: self.EMPTY_MESSAGE}.get(self.state)

    @property
    def create_label(self) -> str:
        return self.CREATING_LABEL if self.creating else self.CREATE_LABEL

    def _settle(self) -> None:
        self.state = PanelState.READY if self.tests else PanelState.EMPTY

    async def refresh(self) -> PanelState:
        self.state = PanelState.LOADING
        self.error = None
        try:
            self.tests = await self.client.list_ab_tests(self.workflow_id)
        except ApiError as e:
            logger.warning("Could not load A/B tests for %s: %s", self.workflow_id, e)
            self.error = str(e)
            self.state = PanelState.ERROR
        else:
            self._settle()
        return self.state

    async def create_test(self, name: str = "") -> WorkflowAbTest | None:
        """Start a new test and append it once the server accepts it.

        Ignored while another create is in flight. A failure records
        :attr:`error` and leaves the list unchanged.
        """
        if self.creating:
            return None
        self.creating = True
        try:
            test = await self.client.create_ab_test(self.workflow_id, name)
        except ApiError as e:
            logger.warning("Could not create A/B test for %s: %s", self.workflow_id, e)
            self.error = str(e)
            return None
        finally:
            self.creating = False
        self.tests.append(test)
        self._settle()
        return test

    async def stop_test(self, test_id: str) -> bool:
        """Mark a running test completed.

        Returns:
            Whether the server accepted the change.
        """
        try:
            stopped = await self.client.stop_ab_test(self.workflow_id, test_id)
        except ApiError as e:
            logger.warning("Could not stop A/B test %s: %s", test_id, e)
            self.error = str(e)
            return False
        self.tests = [stopped if test.id == test_id else test for test in self.tests]
        return True
