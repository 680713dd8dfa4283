"""Page-level workflow store.

:class:`WorkflowStore` owns the authoritative in-memory workflow collection.
It is changed only through :meth:`~WorkflowStore.load`,
:meth:`~WorkflowStore.handle_save` and :meth:`~WorkflowStore.delete`; readers
receive copies. Subscribers are notified with a fresh copy after every change,
which is how the list view re-renders.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from salesmeraki_workflows.core.catalog import instantiate_template
from salesmeraki_workflows.core.merge import filter_by_name, merge_workflows, upsert_workflow
from salesmeraki_workflows.core.models import Workflow, is_local_id
from salesmeraki_workflows.core.types import ActiveView
from salesmeraki_workflows.exceptions import ApiError

if TYPE_CHECKING:
    from salesmeraki_workflows.builder import WorkflowBuilder
    from salesmeraki_workflows.core.catalog import WorkflowTemplate
    from salesmeraki_workflows.sync.cache import WorkflowCache
    from salesmeraki_workflows.sync.client import WorkflowApiClient
    from salesmeraki_workflows.sync.session import SessionProvider

__all__ = ["CACHED_DATA_NOTICE", "Listener", "WorkflowStore"]

logger = logging.getLogger(__name__)

CACHED_DATA_NOTICE = "Using cached data (API error occurred)"
DELETE_FAILED_NOTICE = "Failed to delete workflow"

Listener = Callable[[list[Workflow]], None]
"""Receives a copy of the collection after every change."""


class WorkflowStore:
    """The workflows page: collection, selection and active view.

    Args:
        cache: Client-side cache of the collection.
        client: REST client. Without one the store works from the cache only.
        session_provider: Passed on to builders opened from this store.
    """

    def __init__(
        self,
        cache: WorkflowCache,
        client: WorkflowApiClient | None = None,
        *,
        session_provider: SessionProvider | None = None,
    ) -> None:
        self.cache = cache
        self.client = client
        self.session_provider = session_provider
        self.notice: str | None = None
        self.loading = False
        self.view = ActiveView.LIST
        self.selected: Workflow | None = None
        self.search_term = ""
        self._workflows: list[Workflow] = []
        self._listeners: list[Listener] = []

    @property
    def workflows(self) -> list[Workflow]:
        """A copy of the current collection."""
        return list(self._workflows)

    @property
    def visible_workflows(self) -> list[Workflow]:
        """The collection narrowed by :attr:`search_term`."""
        return self.filter(self.search_term)

    @property
    def empty_message(self) -> str | None:
        """What the list shows when nothing is visible."""
        if self.visible_workflows:
            return None
        return "No workflows match your search" if self.search_term else "No workflows found"

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for collection changes.

        Returns:
            A callable that unregisters the listener. Calling it again is a no-op.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_workflows(self, workflows: list[Workflow]) -> None:
        self._workflows = list(workflows)
        for listener in list(self._listeners):
            listener(self.workflows)

    async def load(self) -> list[Workflow]:
        """Show the cached collection, then merge in the server's.

        A failed fetch leaves the cached collection in place and sets
        :attr:`notice`; it never raises.

        Returns:
            The resulting collection.
        """
        self.loading = True
        self.notice = None
        cached = self.cache.read_workflows()
        self._set_workflows(cached)

        if self.client is None:
            self.loading = False
            return self.workflows

        try:
            remote = await self.client.list_workflows()
        except ApiError as e:
            logger.warning("Could not fetch workflows, using cache: %s", e)
            self.notice = CACHED_DATA_NOTICE
        else:
            self._set_workflows(merge_workflows(cached, remote))
            logger.debug("Merged %d cached and %d remote workflows", len(cached), len(remote))
        finally:
            self.loading = False
        return self.workflows

    async def handle_save(self, workflow: Workflow, *, replaces: str | None = None) -> Workflow:
        """Make a saved workflow authoritative and return to the list.

        The workflow replaces the cached entry with the same id, or is appended.
        The collection is written back to the cache and mirrored in memory.

        Args:
            workflow: Workflow produced by the builder.
            replaces: Id of an entry the saved workflow supersedes, e.g. the
                ``local-`` id of a draft that the server has now accepted.

        Returns:
            The saved workflow.
        """
        self.cache.upsert(workflow, replaces=replaces)
        self._set_workflows(upsert_workflow(self._workflows, workflow, replaces=replaces))
        self.selected = workflow
        self.view = ActiveView.LIST
        logger.info("Saved workflow %s (%s)", workflow.id, workflow.name)
        return workflow

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow and refresh the list.

        Workflows that only exist locally are never sent to the server.

        Returns:
            Whether the workflow was deleted.
        """
        if not is_local_id(workflow_id) and self.client is not None:
            try:
                await self.client.delete_workflow(workflow_id)
            except ApiError as e:
                logger.error("Could not delete workflow %s: %s", workflow_id, e)
                self.notice = DELETE_FAILED_NOTICE
                return False
        self.cache.remove(workflow_id)
        if self.selected is not None and self.selected.id == workflow_id:
            self.selected = None
        await self.load()
        return True

    def filter(self, term: str) -> list[Workflow]:
        """Case-insensitive name substring filter over the collection."""
        return filter_by_name(self._workflows, term)

    def create_new(self) -> None:
        """Open the builder on a blank workflow."""
        self.selected = None
        self.view = ActiveView.BUILDER

    def edit(self, workflow: Workflow) -> None:
        self.selected = workflow
        self.view = ActiveView.BUILDER

    def use_template(self, template: WorkflowTemplate) -> Workflow:
        """Open the builder on an unsaved copy of ``template``."""
        self.selected = instantiate_template(template)
        self.view = ActiveView.BUILDER
        return self.selected

    def show(self, view: ActiveView) -> None:
        self.view = view

    def cancel(self) -> None:
        self.view = ActiveView.LIST

    def open_builder(self, *, on_auth_error: Callable[[], None] | None = None) -> WorkflowBuilder:
        """Builder for the selected workflow that saves back into this store."""
        from salesmeraki_workflows.builder import WorkflowBuilder

        return WorkflowBuilder(
            self.selected,
            on_save=self.handle_save,
            client=self.client,
            cache=self.cache,
            session_provider=self.session_provider,
            on_auth_error=on_auth_error,
        )
