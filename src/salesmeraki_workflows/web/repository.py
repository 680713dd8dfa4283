"""In-memory persistence behind the mock workflow API.

One :class:`WorkflowRepository` instance holds every workflow, execution,
comment and A/B test the service knows about. The plugin injects it into route handlers,
so nothing else keeps module-level state.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from salesmeraki_workflows.core.catalog import WORKFLOW_TEMPLATES, instantiate_template
from salesmeraki_workflows.core.clock import parse_timestamp, to_iso, utc_now
from salesmeraki_workflows.core.records import (
    AbTestVariant,
    Comment,
    CommentAuthor,
    TeamMember,
    WorkflowAbTest,
    WorkflowAnalytics,
    WorkflowExecution,
)
from salesmeraki_workflows.core.types import AbTestStatus, ExecutionStatus, TimeRange, WorkflowStatus
from salesmeraki_workflows.core.validation import ensure_valid
from salesmeraki_workflows.exceptions import AbTestNotFoundError, WorkflowNotFoundError, WorkflowValidationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from salesmeraki_workflows.core.models import Workflow

__all__ = ["DEFAULT_TEAM", "STEP_RUN_MILLIS", "WorkflowRepository", "seed_demo_workflows"]

logger = logging.getLogger(__name__)

DEFAULT_TEAM: tuple[TeamMember, ...] = (
    TeamMember(id="1", name="John Doe", role="Sales Manager", email="john.doe@salesmeraki.com"),
    TeamMember(id="2", name="Jane Smith", role="Sales Rep", email="jane.smith@salesmeraki.com"),
    TeamMember(id="3", name="Alex Johnson", role="Marketing Specialist", email="alex.johnson@salesmeraki.com"),
)

STEP_RUN_MILLIS = 250
"""Simulated run time charged per step when a workflow is executed."""


class WorkflowRepository:
    """Workflows, their executions, comment threads and A/B tests.

    Args:
        team: Team members returned by the team endpoint.
        clock: Source of the current time.
    """

    def __init__(
        self,
        team: Iterable[TeamMember] | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._workflows: dict[str, Workflow] = {}
        self._executions: list[WorkflowExecution] = []
        self._comments: dict[str, list[Comment]] = {}
        self._ab_tests: dict[str, list[WorkflowAbTest]] = {}
        self._team = list(team if team is not None else DEFAULT_TEAM)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._workflows)

    # Workflows

    def list_workflows(self) -> list[Workflow]:
        return list(self._workflows.values())

    def get(self, workflow_id: str) -> Workflow:
        """Fetch a workflow.

        Raises:
            WorkflowNotFoundError: If the id is unknown.
        """
        try:
            return self._workflows[workflow_id]
        except KeyError as e:
            raise WorkflowNotFoundError(workflow_id) from e

    def create(self, workflow: Workflow) -> Workflow:
        """Store a new workflow under a fresh server id.

        Any client-side id, including a ``local-`` one, is discarded.

        Raises:
            WorkflowValidationError: If the workflow breaks a save-time rule.
        """
        ensure_valid(workflow)
        now = to_iso(self._clock())
        stored = replace(workflow.with_positions(), id=str(uuid4()), created_at=now, updated_at=now)
        self._workflows[stored.id] = stored
        logger.info("Created workflow %s (%s)", stored.id, stored.name)
        return stored

    def update(self, workflow_id: str, workflow: Workflow) -> Workflow:
        """Replace a stored workflow and stamp ``updated_at``.

        Raises:
            WorkflowNotFoundError: If the id is unknown.
            WorkflowValidationError: If the workflow breaks a save-time rule.
        """
        existing = self.get(workflow_id)
        ensure_valid(workflow)
        stored = replace(
            workflow.with_positions(),
            id=workflow_id,
            created_at=existing.created_at,
            created_by=existing.created_by,
            updated_at=to_iso(self._clock()),
        )
        self._workflows[workflow_id] = stored
        logger.info("Updated workflow %s", workflow_id)
        return stored

    def delete(self, workflow_id: str) -> None:
        """Remove a workflow with its executions, comments and A/B tests.

        Raises:
            WorkflowNotFoundError: If the id is unknown.
        """
        self.get(workflow_id)
        del self._workflows[workflow_id]
        self._comments.pop(workflow_id, None)
        self._ab_tests.pop(workflow_id, None)
        self._executions = [e for e in self._executions if e.workflow_id != workflow_id]
        logger.info("Deleted workflow %s", workflow_id)

    # Executions

    def execute(self, workflow_id: str, context: dict[str, Any] | None = None) -> WorkflowExecution:
        """Record a simulated run of a workflow.

        Active and draft workflows complete, each step reporting success.
        Archived or empty workflows fail without running any step.
        """
        workflow = self.get(workflow_id)
        started = self._clock()
        if workflow.status is WorkflowStatus.ARCHIVED or not workflow.steps:
            status = ExecutionStatus.FAILED
            results: dict[str, Any] = {"error": "Workflow is archived" if workflow.steps else "Workflow has no steps"}
            finished = started
        else:
            status = ExecutionStatus.COMPLETED
            results = {step.id: {"type": step.type.value, "status": "completed"} for step in workflow.steps}
            finished = started + timedelta(milliseconds=STEP_RUN_MILLIS * len(workflow.steps))
        execution = WorkflowExecution(
            id=str(uuid4()),
            workflow_id=workflow_id,
            status=status,
            started_at=to_iso(started),
            completed_at=to_iso(finished),
            context=dict(context or {}),
            results=results,
        )
        self._executions.append(execution)
        return execution

    def list_executions(self, workflow_id: str) -> list[WorkflowExecution]:
        self.get(workflow_id)
        return [e for e in self._executions if e.workflow_id == workflow_id]

    def analytics(
        self,
        workflow_id: str | None = None,
        time_range: TimeRange = TimeRange.LAST_30_DAYS,
    ) -> WorkflowAnalytics:
        """Aggregate executions inside ``time_range``.

        Args:
            workflow_id: Restrict to one workflow; ``None`` covers all workflows.
            time_range: Window ending now.

        Raises:
            WorkflowNotFoundError: If ``workflow_id`` is given but unknown.
        """
        if workflow_id is not None:
            self.get(workflow_id)
        days = time_range.days
        since = self._clock() - timedelta(days=days) if days is not None else None
        runs = [
            e
            for e in self._executions
            if (workflow_id is None or e.workflow_id == workflow_id)
            and (since is None or parse_timestamp(e.started_at) >= since)
        ]
        finished = [e for e in runs if e.completed_at]
        durations = [
            (parse_timestamp(e.completed_at) - parse_timestamp(e.started_at)).total_seconds() * 1000 for e in finished
        ]
        completed = sum(1 for e in runs if e.status is ExecutionStatus.COMPLETED)
        return WorkflowAnalytics(
            total_executions=len(runs),
            success_rate=round(completed / len(runs) * 100, 1) if runs else 0.0,
            avg_execution_time=round(sum(durations) / len(durations), 1) if durations else 0.0,
            time_range=time_range,
            workflow_id=workflow_id,
        )

    # Collaboration

    def list_comments(self, workflow_id: str) -> list[Comment]:
        self.get(workflow_id)
        return list(self._comments.get(workflow_id, []))

    def add_comment(self, workflow_id: str, content: str, author: TeamMember) -> Comment:
        """Append a comment to a workflow's thread.

        Raises:
            WorkflowNotFoundError: If the id is unknown.
            WorkflowValidationError: If ``content`` is blank.
        """
        self.get(workflow_id)
        if not content.strip():
            raise WorkflowValidationError({"content": "Comment cannot be empty"})
        comment = Comment(
            id=str(uuid4()),
            content=content.strip(),
            created_at=to_iso(self._clock()),
            user=CommentAuthor(id=author.id, name=author.name, email=author.email),
        )
        self._comments.setdefault(workflow_id, []).append(comment)
        return comment

    def team(self, workflow_id: str) -> list[TeamMember]:
        self.get(workflow_id)
        return list(self._team)

    def team_member(self, member_id: str) -> TeamMember | None:
        return next((member for member in self._team if member.id == member_id), None)

    # A/B tests

    def list_ab_tests(self, workflow_id: str) -> list[WorkflowAbTest]:
        self.get(workflow_id)
        return list(self._ab_tests.get(workflow_id, []))

    def create_ab_test(self, workflow_id: str, name: str = "") -> WorkflowAbTest:
        """Start an A/B test of a workflow against a copy of itself.

        The test opens as active with a ``Control`` arm running the stored
        workflow and a ``Variant B`` arm running a copy that can diverge.

        Raises:
            WorkflowNotFoundError: If the id is unknown.
        """
        workflow = self.get(workflow_id)
        test = WorkflowAbTest(
            id=str(uuid4()),
            workflow_id=workflow_id,
            name=name.strip(),
            status=AbTestStatus.ACTIVE,
            variants=[
                AbTestVariant(id=str(uuid4()), name="Control", workflow=workflow),
                AbTestVariant(id=str(uuid4()), name="Variant B", workflow=replace(workflow)),
            ],
            start_date=to_iso(self._clock()),
        )
        self._ab_tests.setdefault(workflow_id, []).append(test)
        logger.info("Started A/B test %s on workflow %s", test.id, workflow_id)
        return test

    def get_ab_test(self, workflow_id: str, test_id: str) -> WorkflowAbTest:
        """Fetch one A/B test of a workflow.

        Raises:
            WorkflowNotFoundError: If the workflow id is unknown.
            AbTestNotFoundError: If the workflow has no test with ``test_id``.
        """
        for test in self.list_ab_tests(workflow_id):
            if test.id == test_id:
                return test
        raise AbTestNotFoundError(workflow_id, test_id)

    def update_ab_test(
        self,
        workflow_id: str,
        test_id: str,
        *,
        name: str | None = None,
        status: AbTestStatus | str | None = None,
        winner: str | None = None,
    ) -> WorkflowAbTest:
        """Rename, stop or decide an A/B test.

        Completing a test stamps ``end_date``. Without an explicit ``winner``
        the arm with the most conversions wins, unless no arm has converted.
        Moving a test back out of ``completed`` clears ``end_date``.

        Raises:
            WorkflowNotFoundError: If the workflow id is unknown.
            AbTestNotFoundError: If the workflow has no test with ``test_id``.
            WorkflowValidationError: If ``status`` or ``winner`` is not valid for the test.
        """
        test = self.get_ab_test(workflow_id, test_id)
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name.strip()
        if winner is not None:
            if test.variant(winner) is None:
                raise WorkflowValidationError({"winner": f"Unknown variant '{winner}'"})
            changes["winner"] = winner
        if status is not None:
            try:
                new_status = AbTestStatus(status)
            except ValueError as e:
                raise WorkflowValidationError({"status": f"Unknown test status '{status}'"}) from e
            changes["status"] = new_status
            if new_status is AbTestStatus.COMPLETED:
                changes["end_date"] = test.end_date or to_iso(self._clock())
                if winner is None and test.winner is None:
                    changes["winner"] = _leading_variant(test)
            else:
                changes["end_date"] = None

        updated = replace(test, **changes)
        tests = self._ab_tests[workflow_id]
        tests[tests.index(test)] = updated
        logger.info("Updated A/B test %s on workflow %s: %s", test_id, workflow_id, updated.status)
        return updated

    def delete_ab_test(self, workflow_id: str, test_id: str) -> None:
        """Remove an A/B test.

        Raises:
            WorkflowNotFoundError: If the workflow id is unknown.
            AbTestNotFoundError: If the workflow has no test with ``test_id``.
        """
        test = self.get_ab_test(workflow_id, test_id)
        self._ab_tests[workflow_id].remove(test)


def _leading_variant(test: WorkflowAbTest) -> str | None:
    best = max(test.variants, key=lambda variant: variant.conversions, default=None)
    if best is None or best.conversions == 0:
        return None
    return best.id


def seed_demo_workflows(repository: WorkflowRepository) -> list[Workflow]:
    """Store one active workflow per built-in template."""
    seeded = []
    for template in WORKFLOW_TEMPLATES:
        workflow = replace(instantiate_template(template), name=template.name, status=WorkflowStatus.ACTIVE)
        seeded.append(repository.create(workflow))
    logger.debug("Seeded %d demo workflows", len(seeded))
    return seeded
