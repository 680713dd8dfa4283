"""End-to-end tests: store, builder and panels against the in-process API."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from salesmeraki_workflows.sync.cache import WorkflowCache
    from salesmeraki_workflows.sync.client import WorkflowApiClient
    from salesmeraki_workflows.sync.session import SessionProvider
    from salesmeraki_workflows.web.repository import WorkflowRepository


@pytest.mark.integration
@pytest.mark.asyncio
class TestBuilderToServer:
    """Tests for saving through the real HTTP stack."""

    async def test_create_save_and_reload(
        self,
        api_client: WorkflowApiClient,
        cache: WorkflowCache,
        session_provider: SessionProvider,
        repository: WorkflowRepository,
    ) -> None:
        """A workflow built from scratch is stored remotely and listed after reload."""
        from salesmeraki_workflows.builder import SAVED_REMOTELY
        from salesmeraki_workflows.core.types import ActiveView
        from salesmeraki_workflows.sync.store import WorkflowStore

        store = WorkflowStore(cache, api_client, session_provider=session_provider)
        await store.load()
        store.create_new()
        builder = store.open_builder()
        builder.set_field("name", "Inbound leads")
        builder.set_trigger("new_lead")
        builder.add_step("email", {"template": "welcome"})
        builder.add_step("delay", {"duration": 48})
        builder.add_step("task", {"title": "Call"})
        builder.move_step(2, 1)

        saved = await builder.save()

        assert saved is not None
        assert builder.status_message == SAVED_REMOTELY
        assert store.view is ActiveView.LIST
        assert [w.id for w in store.workflows] == [saved.id]
        stored = repository.get(saved.id)
        assert [s.type.value for s in stored.steps] == ["email", "task", "delay"]
        assert [s.position for s in stored.steps] == [0, 1, 2]

        fresh = WorkflowStore(cache, api_client)
        assert [w.name for w in await fresh.load()] == ["Inbound leads"]

    async def test_double_save_stores_one_copy(
        self,
        api_client: WorkflowApiClient,
        cache: WorkflowCache,
        session_provider: SessionProvider,
        repository: WorkflowRepository,
    ) -> None:
        """Two saves fired together create a single server workflow."""
        import asyncio

        from salesmeraki_workflows.sync.store import WorkflowStore

        store = WorkflowStore(cache, api_client, session_provider=session_provider)
        store.create_new()
        builder = store.open_builder()
        builder.set_field("name", "Inbound leads")
        builder.add_step("email", {"template": "welcome"})

        results = await asyncio.gather(builder.save(), builder.save())

        assert sum(result is not None for result in results) == 1
        assert len(repository) == 1
        assert len(store.workflows) == 1

    async def test_local_draft_is_promoted(
        self,
        api_client: WorkflowApiClient,
        cache: WorkflowCache,
        session_provider: SessionProvider,
    ) -> None:
        """A draft saved offline is replaced by its server copy once the server is reachable."""
        from salesmeraki_workflows.sync.store import WorkflowStore

        offline = WorkflowStore(cache, None, session_provider=session_provider)
        offline.create_new()
        builder = offline.open_builder()
        builder.set_field("name", "Offline draft")
        builder.add_step("sms", {"message": "Hi"})
        draft = await builder.save()
        assert draft is not None
        assert draft.is_local

        online = WorkflowStore(cache, api_client, session_provider=session_provider)
        assert [w.id for w in await online.load()] == [draft.id]
        online.edit(online.workflows[0])

        promoted = await online.open_builder().save()

        assert promoted is not None
        assert not promoted.is_local
        assert [w.id for w in online.workflows] == [promoted.id]
        assert [w.id for w in cache.read_workflows()] == [promoted.id]

    async def test_stale_cache_does_not_override_server(
        self,
        api_client: WorkflowApiClient,
        cache: WorkflowCache,
        repository: WorkflowRepository,
    ) -> None:
        """Newer server copies win over older cached ones."""
        from dataclasses import replace

        from salesmeraki_workflows.core.catalog import WORKFLOW_TEMPLATES
        from salesmeraki_workflows.sync.store import WorkflowStore

        stored = repository.create(replace(WORKFLOW_TEMPLATES[0].workflow, name="Server name"))
        cache.write_workflows([replace(stored, name="Stale name", updated_at="2000-01-01T00:00:00.000Z")])

        workflows = await WorkflowStore(cache, api_client).load()

        assert [w.name for w in workflows] == ["Server name"]

    async def test_delete_round_trip(
        self,
        api_client: WorkflowApiClient,
        cache: WorkflowCache,
        repository: WorkflowRepository,
    ) -> None:
        """Deleting through the store removes the workflow everywhere."""
        from salesmeraki_workflows.core.catalog import WORKFLOW_TEMPLATES
        from salesmeraki_workflows.sync.store import WorkflowStore

        stored = repository.create(WORKFLOW_TEMPLATES[1].workflow)
        store = WorkflowStore(cache, api_client)
        await store.load()

        assert await store.delete(stored.id) is True

        assert len(repository) == 0
        assert store.workflows == []
        assert cache.read_workflows() == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestPanelsAgainstServer:
    """Tests for the panels over HTTP."""

    async def test_analytics_and_collaboration(
        self, api_client: WorkflowApiClient, repository: WorkflowRepository
    ) -> None:
        """Panels show metrics and comments produced through the API."""
        from salesmeraki_workflows.core.catalog import WORKFLOW_TEMPLATES
        from salesmeraki_workflows.core.types import PanelState
        from salesmeraki_workflows.panels import AnalyticsPanel, CollaborationPanel

        stored = repository.create(WORKFLOW_TEMPLATES[0].workflow)
        analytics = AnalyticsPanel(api_client, stored.id)
        assert await analytics.refresh() is PanelState.EMPTY

        await api_client.execute_workflow(stored.id, {"leadId": "1"})
        assert await analytics.refresh("7d") is PanelState.READY
        assert analytics.metrics is not None
        assert analytics.metrics.total_executions == 1

        collaboration = CollaborationPanel(api_client, stored.id)
        assert await collaboration.refresh() is PanelState.EMPTY
        comment = await collaboration.add_comment("Looks good")
        assert comment is not None
        assert comment.user.name == "John Doe"
        assert [m.name for m in collaboration.team][:1] == ["John Doe"]

    async def test_ab_tests(self, api_client: WorkflowApiClient, repository: WorkflowRepository) -> None:
        """The A/B test panel creates and stops tests through the API."""
        from salesmeraki_workflows.core.catalog import WORKFLOW_TEMPLATES
        from salesmeraki_workflows.core.types import AbTestStatus, PanelState
        from salesmeraki_workflows.panels import AbTestPanel

        stored = repository.create(WORKFLOW_TEMPLATES[0].workflow)
        panel = AbTestPanel(api_client, stored.id)
        assert await panel.refresh() is PanelState.EMPTY

        test = await panel.create_test("Subject line")
        assert test is not None
        assert test.variants[0].workflow.id == stored.id

        assert await panel.stop_test(test.id)
        assert not panel.tests[0].is_running
        assert repository.get_ab_test(stored.id, test.id).status is AbTestStatus.COMPLETED

        reloaded = AbTestPanel(api_client, stored.id)
        assert await reloaded.refresh() is PanelState.READY
        assert [t.title for t in reloaded.tests] == ["Subject line"]

    async def test_missing_workflow_maps_to_api_error(self, api_client: WorkflowApiClient) -> None:
        """Server 404s surface as ApiError with the status code."""
        from salesmeraki_workflows.exceptions import ApiError

        with pytest.raises(ApiError) as exc_info:
            await api_client.get_workflow("nope")

        assert exc_info.value.status_code == 404
        assert not exc_info.value.is_auth_error

    async def test_recommendations_from_server(self, api_client: WorkflowApiClient) -> None:
        """The builder receives suggestions for step kinds it lacks."""
        from salesmeraki_workflows.builder import WorkflowBuilder
        from salesmeraki_workflows.core.types import StepType

        builder = WorkflowBuilder(on_save=lambda workflow, replaces=None: None, client=api_client)
        builder.add_step("email")

        recommendations = await builder.recommend_steps()

        assert [r.type for r in recommendations] == [StepType.TASK, StepType.AI_ANALYSIS]
