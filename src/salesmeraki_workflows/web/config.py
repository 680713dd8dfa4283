"""Configuration for the workflow API plugin."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from litestar.types import Guard

    from salesmeraki_workflows.core.records import TeamMember
    from salesmeraki_workflows.web.repository import WorkflowRepository

__all__ = ["WorkflowApiConfig"]


@dataclass
class WorkflowApiConfig:
    """Configuration for the WorkflowApiPlugin.

    Attributes:
        path_prefix: URL path prefix for all API endpoints.
        repository: Pre-populated repository. If not provided, an empty one
            is created.
        tokens: Bearer tokens mapped to the team member they authenticate.
        allow_any_token: Whether unknown non-empty tokens are accepted as a
            demo user.
        guards: Litestar guards applied to every API endpoint.
        tags: OpenAPI tags applied to the API endpoints.
        include_in_schema: Whether to include the endpoints in the OpenAPI schema.

    Example:
        >>> from salesmeraki_workflows.web import WorkflowApiConfig
        >>> config = WorkflowApiConfig(
        ...     path_prefix="/api",
        ...     allow_any_token=False,
        ... )
    """

    path_prefix: str = "/api"
    repository: WorkflowRepository | None = None
    tokens: dict[str, TeamMember] = field(default_factory=dict)
    allow_any_token: bool = True
    guards: list[Guard] = field(default_factory=list)
    tags: list[str] = field(default_factory=lambda: ["Workflows"])
    include_in_schema: bool = True
