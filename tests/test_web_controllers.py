"""Tests for the workflow API controllers over HTTP."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import pytest
from litestar import Litestar
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
)
from litestar.testing import AsyncTestClient

from salesmeraki_workflows.plugin import WorkflowApiPlugin
from salesmeraki_workflows.web.config import WorkflowApiConfig
from salesmeraki_workflows.web.repository import DEFAULT_TEAM, WorkflowRepository

AUTH = {"Authorization": "Bearer test-token"}


def workflow_body(name: str = "Lead follow-up", **overrides: Any) -> dict[str, Any]:
    """A valid workflow document as the builder sends it."""
    body: dict[str, Any] = {
        "id": "",
        "name": name,
        "description": "Follow up new leads",
        "status": "draft",
        "trigger": {"type": "new_lead", "name": "New Lead", "description": "Trigger when a new lead is created"},
        "steps": [
            {"id": "s1", "type": "email", "position": 5, "config": {"template": "welcome"}},
            {"id": "s2", "type": "delay", "position": 9, "config": {"duration": 24}},
        ],
    }
    body.update(overrides)
    return body


@pytest.fixture
async def client(api_app: Litestar) -> AsyncIterator[AsyncTestClient[Litestar]]:
    """HTTP test client for the mock API."""
    async with AsyncTestClient(app=api_app) as test_client:
        yield test_client


@pytest.mark.integration
@pytest.mark.asyncio
class TestAuthentication:
    """Tests for bearer-token authentication."""

    async def test_missing_token_is_rejected(self, client: AsyncTestClient[Litestar]) -> None:
        """Requests without a bearer token get 401."""
        response = await client.get("/api/workflows")

        assert response.status_code == HTTP_401_UNAUTHORIZED

    async def test_health_needs_no_token(self, client: AsyncTestClient[Litestar]) -> None:
        """The health check is open."""
        response = await client.get("/api/health")

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"status": "ok"}

    async def test_unknown_token_allowed_in_demo_mode(self, client: AsyncTestClient[Litestar]) -> None:
        """Any token works while allow_any_token is on."""
        response = await client.get("/api/workflows", headers={"Authorization": "Bearer whatever"})

        assert response.status_code == HTTP_200_OK

    async def test_unknown_token_rejected_when_strict(self) -> None:
        """With allow_any_token off only configured tokens authenticate."""
        config = WorkflowApiConfig(tokens={"good": DEFAULT_TEAM[0]}, allow_any_token=False)
        app = Litestar(plugins=[WorkflowApiPlugin(config)])

        async with AsyncTestClient(app=app) as strict:
            rejected = await strict.get("/api/workflows", headers={"Authorization": "Bearer bad"})
            accepted = await strict.get("/api/workflows", headers={"Authorization": "Bearer good"})

        assert rejected.status_code == HTTP_401_UNAUTHORIZED
        assert accepted.status_code == HTTP_200_OK


@pytest.mark.integration
@pytest.mark.asyncio
class TestWorkflowCrud:
    """Tests for the workflow CRUD endpoints."""

    async def test_create_and_fetch(self, client: AsyncTestClient[Litestar]) -> None:
        """Created workflows get a server id, timestamps and renumbered steps."""
        created = await client.post("/api/workflows", json=workflow_body(id="local-1"), headers=AUTH)

        assert created.status_code == HTTP_201_CREATED
        data = created.json()
        assert data["id"] and data["id"] != "local-1"
        assert data["createdAt"] == data["updatedAt"]
        assert [s["position"] for s in data["steps"]] == [0, 1]

        fetched = await client.get(f"/api/workflows/{data['id']}", headers=AUTH)
        assert fetched.json() == data

        listed = await client.get("/api/workflows", headers=AUTH)
        assert [w["id"] for w in listed.json()] == [data["id"]]

    async def test_update_replaces(self, client: AsyncTestClient[Litestar]) -> None:
        """PUT replaces the workflow under the path id."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()

        response = await client.put(
            f"/api/workflows/{created['id']}",
            json=workflow_body("Renamed", id="ignored", status="active"),
            headers=AUTH,
        )

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["id"] == created["id"]
        assert data["name"] == "Renamed"
        assert data["status"] == "active"
        assert data["createdAt"] == created["createdAt"]

    async def test_delete(self, client: AsyncTestClient[Litestar], repository: WorkflowRepository) -> None:
        """DELETE answers with a success flag and removes the workflow."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()

        response = await client.delete(f"/api/workflows/{created['id']}", headers=AUTH)

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"success": True}
        assert len(repository) == 0

    async def test_missing_workflow_is_404(self, client: AsyncTestClient[Litestar]) -> None:
        """Unknown ids are reported as 404 on every workflow route."""
        for method, path in (
            ("GET", "/api/workflows/nope"),
            ("DELETE", "/api/workflows/nope"),
            ("GET", "/api/workflows/nope/comments"),
            ("GET", "/api/workflows/nope/analytics"),
        ):
            response = await client.request(method, path, headers=AUTH)
            assert response.status_code == HTTP_404_NOT_FOUND, path
            assert "nope" in response.json()["detail"]

    async def test_validation_errors_are_400(self, client: AsyncTestClient[Litestar]) -> None:
        """Save-time rule failures come back per field."""
        response = await client.post("/api/workflows", json=workflow_body("  ", steps=[]), headers=AUTH)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == {
            "name": "Workflow name is required",
            "steps": "At least one step is required",
        }

    async def test_unknown_step_type_is_400(self, client: AsyncTestClient[Litestar]) -> None:
        """Documents with unknown step kinds are refused."""
        body = workflow_body(steps=[{"id": "s1", "type": "fax", "position": 0, "config": {}}])

        response = await client.post("/api/workflows", json=body, headers=AUTH)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert "fax" in response.json()["detail"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestExecutionAndAnalytics:
    """Tests for execution and analytics endpoints."""

    async def test_execute_then_analytics(self, client: AsyncTestClient[Litestar]) -> None:
        """Executions feed the workflow and global analytics."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()
        workflow_id = created["id"]

        run = await client.post(
            f"/api/workflows/{workflow_id}/execute", json={"context": {"leadId": "7"}}, headers=AUTH
        )
        assert run.status_code == HTTP_201_CREATED
        assert run.json()["status"] == "completed"
        assert run.json()["context"] == {"leadId": "7"}

        executions = await client.get(f"/api/workflows/{workflow_id}/executions", headers=AUTH)
        assert len(executions.json()) == 1

        scoped = await client.get(f"/api/workflows/{workflow_id}/analytics", params={"timeRange": "7d"}, headers=AUTH)
        assert scoped.json() == {
            "totalExecutions": 1,
            "successRate": 100.0,
            "avgExecutionTime": 500.0,
            "timeRange": "7d",
            "workflowId": workflow_id,
        }

        overall = await client.get("/api/workflows/analytics", headers=AUTH)
        assert overall.json()["timeRange"] == "30d"
        assert overall.json()["totalExecutions"] == 1
        assert "workflowId" not in overall.json()

    async def test_invalid_time_range_is_400(self, client: AsyncTestClient[Litestar]) -> None:
        """Only the supported windows are accepted."""
        response = await client.get("/api/workflows/analytics", params={"timeRange": "1y"}, headers=AUTH)

        assert response.status_code == HTTP_400_BAD_REQUEST


@pytest.mark.integration
@pytest.mark.asyncio
class TestCollaboration:
    """Tests for comments, team and AI endpoints."""

    async def test_comment_author_is_authenticated_user(self, client: AsyncTestClient[Litestar]) -> None:
        """Comments are attributed to the token's team member."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()

        posted = await client.post(
            f"/api/workflows/{created['id']}/comments", json={"content": "Ready for review"}, headers=AUTH
        )

        assert posted.status_code == HTTP_201_CREATED
        assert posted.json()["user"]["name"] == "John Doe"
        listed = await client.get(f"/api/workflows/{created['id']}/comments", headers=AUTH)
        assert [c["content"] for c in listed.json()] == ["Ready for review"]

    async def test_blank_comment_is_400(self, client: AsyncTestClient[Litestar]) -> None:
        """Blank comments are refused."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()

        response = await client.post(f"/api/workflows/{created['id']}/comments", json={"content": " "}, headers=AUTH)

        assert response.status_code == HTTP_400_BAD_REQUEST

    async def test_team(self, client: AsyncTestClient[Litestar]) -> None:
        """The team endpoint lists the default team."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()

        response = await client.get(f"/api/workflows/{created['id']}/team", headers=AUTH)

        assert [m["role"] for m in response.json()] == ["Sales Manager", "Sales Rep", "Marketing Specialist"]

    async def test_recommendations_skip_present_steps(self, client: AsyncTestClient[Litestar]) -> None:
        """The AI endpoint suggests step kinds not in the workflow yet."""
        payload = {
            "prompt": "Recommend workflow steps based on current configuration",
            "context": {
                "workflowName": "Lead follow-up",
                "currentSteps": [{"id": "s1", "type": "email"}, {"id": "s2", "type": "fax"}],
            },
            "type": "sales_analysis",
        }

        response = await client.post("/api/ai", json=payload, headers=AUTH)

        assert response.status_code == HTTP_200_OK
        assert [r["type"] for r in response.json()["recommendations"]] == ["task", "ai_analysis"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestAbTests:
    """Tests for the workflow-scoped A/B test endpoints."""

    async def test_create_list_get_and_stop(self, client: AsyncTestClient[Litestar]) -> None:
        """A created test can be listed, fetched and stopped with a status PATCH."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()
        base = f"/api/workflows/{created['id']}/tests"

        started = await client.post(base, json={"workflowId": created["id"], "name": "Subject line"}, headers=AUTH)

        assert started.status_code == HTTP_201_CREATED
        test = started.json()
        assert test["status"] == "active"
        assert test["workflowId"] == created["id"]
        assert [v["name"] for v in test["variants"]] == ["Control", "Variant B"]
        assert test["variants"][0]["metrics"] == {"conversions": 0, "completionRate": 0.0, "averageTime": 0.0}

        listed = await client.get(base, headers=AUTH)
        assert [t["id"] for t in listed.json()] == [test["id"]]
        fetched = await client.get(f"{base}/{test['id']}", headers=AUTH)
        assert fetched.json()["name"] == "Subject line"

        stopped = await client.patch(f"{base}/{test['id']}", json={"status": "completed"}, headers=AUTH)

        assert stopped.status_code == HTTP_200_OK
        assert stopped.json()["status"] == "completed"
        assert "endDate" in stopped.json()

    async def test_missing_test_is_404(self, client: AsyncTestClient[Litestar]) -> None:
        """Unknown workflows and unknown tests are 404s."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()

        missing_workflow = await client.get("/api/workflows/nope/tests", headers=AUTH)
        missing_test = await client.get(f"/api/workflows/{created['id']}/tests/nope", headers=AUTH)

        assert missing_workflow.status_code == HTTP_404_NOT_FOUND
        assert missing_test.status_code == HTTP_404_NOT_FOUND
        assert "nope" in missing_test.json()["detail"]

    async def test_bad_patch_is_400(self, client: AsyncTestClient[Litestar]) -> None:
        """Unknown statuses are refused."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()
        base = f"/api/workflows/{created['id']}/tests"
        test = (await client.post(base, json={}, headers=AUTH)).json()

        response = await client.patch(f"{base}/{test['id']}", json={"status": "paused"}, headers=AUTH)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert "status" in response.json()["errors"]

    async def test_delete_test(self, client: AsyncTestClient[Litestar], repository: WorkflowRepository) -> None:
        """Deleting a test removes it from the workflow."""
        created = (await client.post("/api/workflows", json=workflow_body(), headers=AUTH)).json()
        base = f"/api/workflows/{created['id']}/tests"
        test = (await client.post(base, json={}, headers=AUTH)).json()

        response = await client.delete(f"{base}/{test['id']}", headers=AUTH)

        assert response.json() == {"success": True}
        assert repository.list_ab_tests(created["id"]) == []
