"""Shared test fixtures for salesmeraki-workflows test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import httpx
import pytest

if TYPE_CHECKING:
    from litestar import Litestar

    from salesmeraki_workflows.core.models import Workflow
    from salesmeraki_workflows.sync.cache import WorkflowCache
    from salesmeraki_workflows.sync.client import WorkflowApiClient
    from salesmeraki_workflows.sync.session import Session, SessionProvider
    from salesmeraki_workflows.web.repository import WorkflowRepository

API_TOKEN = "test-token"


@pytest.fixture
def make_workflow() -> Callable[..., Workflow]:
    """Factory for valid workflows.

    Returns:
        Callable building a workflow with ``step_count`` email steps.
    """
    from salesmeraki_workflows.core.models import Workflow, WorkflowStep
    from salesmeraki_workflows.core.types import StepType

    def _make(
        workflow_id: str = "",
        name: str = "Lead follow-up",
        *,
        updated_at: str | None = None,
        step_count: int = 1,
        **overrides: Any,
    ) -> Workflow:
        steps = [
            WorkflowStep(id=f"{workflow_id or 'new'}-step-{index}", type=StepType.EMAIL, position=index)
            for index in range(step_count)
        ]
        return Workflow(id=workflow_id, name=name, updated_at=updated_at, steps=steps, **overrides)

    return _make


@pytest.fixture
def cache() -> WorkflowCache:
    """Workflow cache backed by memory."""
    from salesmeraki_workflows.sync.cache import MemoryStore, WorkflowCache

    return WorkflowCache(MemoryStore())


@pytest.fixture
def session() -> Session:
    """A signed-in session that expires in an hour."""
    from salesmeraki_workflows.sync.session import Session

    return Session(
        user_id="1",
        access_token=API_TOKEN,
        name="John Doe",
        email="john.doe@salesmeraki.com",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def session_provider(session: Session) -> SessionProvider:
    from salesmeraki_workflows.sync.session import static_session

    return static_session(session)


@pytest.fixture
def repository() -> WorkflowRepository:
    """Empty repository for the mock API."""
    from salesmeraki_workflows.web.repository import WorkflowRepository

    return WorkflowRepository()


@pytest.fixture
def api_app(repository: WorkflowRepository) -> Litestar:
    """Mock API app; ``test-token`` authenticates as John Doe."""
    from litestar import Litestar

    from salesmeraki_workflows.plugin import WorkflowApiPlugin
    from salesmeraki_workflows.web.config import WorkflowApiConfig
    from salesmeraki_workflows.web.repository import DEFAULT_TEAM

    config = WorkflowApiConfig(repository=repository, tokens={API_TOKEN: DEFAULT_TEAM[0]})
    return Litestar(plugins=[WorkflowApiPlugin(config)])


@pytest.fixture
async def api_client(api_app: Litestar, session_provider: SessionProvider) -> AsyncIterator[WorkflowApiClient]:
    """REST client talking to the in-process mock API."""
    from salesmeraki_workflows.sync.client import WorkflowApiClient

    client = WorkflowApiClient(
        "http://testserver/api",
        session_provider=session_provider,
        transport=httpx.ASGITransport(app=api_app),
    )
    async with client:
        yield client
