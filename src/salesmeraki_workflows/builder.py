"""Step-graph editor for a single workflow.

The builder holds one trigger slot and an ordered step list, validates the
draft on save, and hands the saved :class:`~salesmeraki_workflows.core.models.Workflow`
to its ``on_save`` collaborator.

Save cycle::

    EDITING -> VALIDATING -> (invalid) EDITING
                          -> (no session) AUTH_EXPIRED
                          -> SAVING -> EDITING

A remote save that fails for any reason other than authentication degrades
to a local-only save, so a valid save always produces a workflow.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Protocol

from salesmeraki_workflows.core.catalog import FALLBACK_RECOMMENDATIONS, TriggerTemplate, get_trigger_template, step_title
from salesmeraki_workflows.core.clock import to_iso, utc_now
from salesmeraki_workflows.core.merge import new_local_id
from salesmeraki_workflows.core.models import Trigger, Workflow, WorkflowStep
from salesmeraki_workflows.core.steps import StepConfig, build_step_config
from salesmeraki_workflows.core.types import BuilderState, StepType, TriggerType, WorkflowStatus
from salesmeraki_workflows.core.validation import validate_field, validate_fields
from salesmeraki_workflows.exceptions import ApiError, AuthenticationRequiredError
from salesmeraki_workflows.sync.session import active_session

if TYPE_CHECKING:
    from salesmeraki_workflows.core.records import StepRecommendation
    from salesmeraki_workflows.sync.cache import WorkflowCache
    from salesmeraki_workflows.sync.client import WorkflowApiClient
    from salesmeraki_workflows.sync.session import SessionProvider

__all__ = ["SAVED_LOCALLY", "SAVED_REMOTELY", "SaveCallback", "WorkflowBuilder"]

logger = logging.getLogger(__name__)

SAVED_REMOTELY = "Workflow saved successfully"
SAVED_LOCALLY = "Workflow saved locally"
SAVE_FAILED = "Failed to save workflow"


class SaveCallback(Protocol):
    """Receives the saved workflow; ``replaces`` is the superseded id, if any."""

    def __call__(self, workflow: Workflow, *, replaces: str | None = None) -> Awaitable[Any] | Any: ...


class WorkflowBuilder:
    """Editor state for one workflow.

    Args:
        workflow: Workflow to edit, ``None`` for a new one.
        on_save: Called with every successfully saved workflow.
        client: REST client. Without one, saves are local only.
        cache: Cache for the builder's snapshot backup.
        session_provider: Source of the ambient session checked on save.
        on_auth_error: Called when a save is refused for lack of a session.
    """

    def __init__(
        self,
        workflow: Workflow | None = None,
        *,
        on_save: SaveCallback,
        client: WorkflowApiClient | None = None,
        cache: WorkflowCache | None = None,
        session_provider: SessionProvider | None = None,
        on_auth_error: Callable[[], None] | None = None,
    ) -> None:
        self.on_save = on_save
        self.client = client
        self.cache = cache
        self.session_provider = session_provider
        self.on_auth_error = on_auth_error

        self.state = BuilderState.EDITING
        self.errors: dict[str, str] = {}
        self.touched: set[str] = set()
        self.status_message: str | None = None
        self.recommendations: list[StepRecommendation] = []
        self._load(workflow or Workflow())

    def _load(self, workflow: Workflow) -> None:
        self._origin = workflow
        self.workflow_id = workflow.id
        self.name = workflow.name
        self.description = workflow.description
        self.status = workflow.status
        self.trigger = replace(workflow.trigger) if workflow.trigger else None
        self._steps = [replace(step) for step in workflow.steps]

    @property
    def steps(self) -> list[WorkflowStep]:
        """A copy of the step list in display order."""
        return list(self._steps)

    def _steps_changed(self) -> None:
        for index, step in enumerate(self._steps):
            step.position = index
        if self.touched:
            self._revalidate("steps", self._steps)
        if self.cache is not None:
            self.cache.write_steps(self._steps)

    def _index_of(self, step_id: str) -> int:
        for index, step in enumerate(self._steps):
            if step.id == step_id:
                return index
        raise KeyError(step_id)

    # Steps

    def add_step(
        self,
        step_type: StepType | str,
        config: StepConfig | Mapping[str, Any] | None = None,
    ) -> WorkflowStep:
        """Append a new step with a fresh id at the end of the list.

        Raises:
            UnknownStepTypeError: If ``step_type`` is not part of the vocabulary.
        """
        step = WorkflowStep.create(step_type, position=len(self._steps), config=config)
        step.name = step_title(step.type)
        self._steps.append(step)
        self._steps_changed()
        return step

    def remove_step(self, step_id: str) -> WorkflowStep | None:
        """Drop a step. Unknown ids are ignored."""
        try:
            index = self._index_of(step_id)
        except KeyError:
            return None
        removed = self._steps.pop(index)
        self._steps_changed()
        return removed

    def move_step(self, drag_index: int, hover_index: int) -> None:
        """Move the step at ``drag_index`` so it ends up at ``hover_index``.

        Raises:
            IndexError: If either index is outside the step list.
        """
        size = len(self._steps)
        if not (0 <= drag_index < size and 0 <= hover_index < size):
            msg = f"Cannot move step {drag_index} to {hover_index} in a list of {size}"
            raise IndexError(msg)
        if drag_index == hover_index:
            return
        step = self._steps.pop(drag_index)
        self._steps.insert(hover_index, step)
        self._steps_changed()

    def update_step(
        self,
        step_id: str,
        *,
        config: StepConfig | Mapping[str, Any] | None = None,
        name: str | None = None,
        description: str | None = None,
    ) -> WorkflowStep:
        """Change a step's configuration or labels.

        A mapping ``config`` is merged over the current values; a config
        instance replaces them.

        Raises:
            KeyError: If no step has ``step_id``.
            StepConfigError: If the new configuration does not fit the step type.
        """
        index = self._index_of(step_id)
        step = self._steps[index]
        changes: dict[str, Any] = {}
        if isinstance(config, Mapping):
            changes["config"] = build_step_config(step.type, {**step.config.to_dict(), **config})
        elif config is not None:
            changes["config"] = build_step_config(step.type, config)
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        self._steps[index] = replace(step, **changes)
        self._steps_changed()
        return self._steps[index]

    # Trigger

    def set_trigger(self, trigger: Trigger | TriggerTemplate | TriggerType | str) -> Trigger:
        """Fill the trigger slot, replacing any previous trigger."""
        if isinstance(trigger, TriggerTemplate):
            trigger = trigger.to_trigger()
        elif not isinstance(trigger, Trigger):
            trigger = get_trigger_template(TriggerType(trigger)).to_trigger()
        self.trigger = trigger
        return trigger

    def clear_trigger(self) -> None:
        self.trigger = None

    # Fields

    def set_field(self, field: str, value: Any) -> None:
        """Edit ``name``, ``description`` or ``status`` and re-check that field."""
        if field == "name":
            self.name = value
        elif field == "description":
            self.description = value
        elif field == "status":
            self.status = WorkflowStatus(value)
        else:
            msg = f"Unknown workflow field '{field}'"
            raise ValueError(msg)
        self.touched.add(field)
        self._revalidate(field, value)

    def _revalidate(self, field: str, value: Any) -> None:
        message = validate_field(field, value)
        if message:
            self.errors[field] = message
        else:
            self.errors.pop(field, None)

    def validate(self) -> bool:
        """Check the save-time rules and record field errors.

        Returns:
            Whether the draft can be saved.
        """
        for field in ("name", "description", "steps"):
            self.errors.pop(field, None)
        self.errors.update(validate_fields(self.name, self.description, self._steps))
        self.touched.update(("name", "description", "steps"))
        return not any(field in self.errors for field in ("name", "description", "steps"))

    def build(self) -> Workflow:
        """The current draft as a workflow with positions re-derived from order."""
        return replace(
            self._origin,
            id=self.workflow_id,
            name=self.name,
            description=self.description,
            status=self.status,
            trigger=self.trigger,
            steps=list(self._steps),
        ).with_positions()

    # Save

    def _expire_session(self, error: AuthenticationRequiredError) -> None:
        self.errors["auth"] = str(error)
        self.state = BuilderState.AUTH_EXPIRED
        logger.info("Save refused: %s", error)
        if self.on_auth_error is not None:
            self.on_auth_error()

    async def _persist(self, draft: Workflow) -> Workflow:
        if self.client is not None:
            try:
                saved = await self.client.save_workflow(draft)
            except ApiError as e:
                if e.is_auth_error:
                    raise AuthenticationRequiredError from e
                logger.warning("Remote save of '%s' failed, saving locally: %s", draft.name, e)
            else:
                self.status_message = SAVED_REMOTELY
                return saved

        now = to_iso(utc_now())
        self.status_message = SAVED_LOCALLY
        return replace(draft, id=draft.id or new_local_id(), updated_at=now, created_at=draft.created_at or now)

    async def save(self) -> Workflow | None:
        """Validate, persist and hand the workflow to ``on_save``.

        Nothing is sent over the network when validation fails or no session
        is present. The session is read again on every call, so a save can be
        retried after signing in. A call made while another save is in flight
        is ignored.

        Returns:
            The saved workflow, or ``None`` when the save did not happen.
        """
        if self.state is BuilderState.SAVING:
            logger.debug("Save of '%s' already in progress", self.name)
            return None

        self.status_message = None
        self.errors.pop("auth", None)
        self.errors.pop("submit", None)

        self.state = BuilderState.VALIDATING
        if not self.validate():
            self.state = BuilderState.EDITING
            return None

        if active_session(self.session_provider) is None:
            self._expire_session(AuthenticationRequiredError())
            return None

        self.state = BuilderState.SAVING
        draft = self.build()
        if self.cache is not None:
            self.cache.write_snapshot(draft)

        try:
            saved = await self._persist(draft)
        except AuthenticationRequiredError as e:
            self._expire_session(e)
            return None

        replaces = draft.id if draft.id and draft.id != saved.id else None
        try:
            result = self.on_save(saved, replaces=replaces)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception("Save callback failed for workflow %s", saved.id)
            self.errors["submit"] = str(e) or SAVE_FAILED
            self.state = BuilderState.EDITING
            return None

        self._load(saved)
        self.state = BuilderState.EDITING
        return saved

    # Backup and recommendations

    def restore_snapshot(self) -> bool:
        """Reload the draft from the cached builder backup.

        Returns:
            Whether a backup was found.
        """
        if self.cache is None:
            return False
        snapshot = self.cache.read_snapshot()
        if snapshot is None:
            return False
        self._load(replace(snapshot, id=self.workflow_id or snapshot.id))
        return True

    async def recommend_steps(self) -> list[StepRecommendation]:
        """Ask the AI endpoint for step suggestions.

        When the endpoint fails, the first two fallback suggestions are used;
        when it answers with nothing, all fallback suggestions are used.
        """
        if self.client is None:
            self.recommendations = list(FALLBACK_RECOMMENDATIONS[:2])
            return self.recommendations
        try:
            recommendations = await self.client.recommend_steps(self.build())
        except ApiError as e:
            logger.warning("Could not fetch step recommendations: %s", e)
            recommendations = list(FALLBACK_RECOMMENDATIONS[:2])
        self.recommendations = recommendations or list(FALLBACK_RECOMMENDATIONS)
        return self.recommendations

    def apply_recommendation(self, recommendation: StepRecommendation) -> WorkflowStep:
        """Add the step a recommendation suggests."""
        step = self.add_step(recommendation.type)
        return self.update_step(step.id, name=recommendation.title, description=recommendation.description)
