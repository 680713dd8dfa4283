"""Litestar mock service for the workflow API.

The service stores everything in an injected :class:`WorkflowRepository` and
authenticates API requests with bearer tokens.
"""

from __future__ import annotations

from salesmeraki_workflows.web.auth import DEMO_USER, BearerTokenAuthMiddleware
from salesmeraki_workflows.web.config import WorkflowApiConfig
from salesmeraki_workflows.web.controllers import AiController, WorkflowController, health
from salesmeraki_workflows.web.repository import DEFAULT_TEAM, WorkflowRepository, seed_demo_workflows

__all__ = [
    "DEFAULT_TEAM",
    "DEMO_USER",
    "AiController",
    "BearerTokenAuthMiddleware",
    "WorkflowApiConfig",
    "WorkflowController",
    "WorkflowRepository",
    "health",
    "seed_demo_workflows",
]
