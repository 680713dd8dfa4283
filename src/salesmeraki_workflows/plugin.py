"""Litestar plugin serving the workflow API.

This module provides the WorkflowApiPlugin, which mounts the workflow
endpoints on a Litestar application and injects the repository behind them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Router
from litestar.di import Provide
from litestar.middleware import DefineMiddleware
from litestar.plugins import InitPluginProtocol

from salesmeraki_workflows.exceptions import AbTestNotFoundError, WorkflowNotFoundError, WorkflowValidationError
from salesmeraki_workflows.web.auth import BearerTokenAuthMiddleware
from salesmeraki_workflows.web.config import WorkflowApiConfig
from salesmeraki_workflows.web.controllers import AbTestController, AiController, WorkflowController, health
from salesmeraki_workflows.web.exceptions import workflow_not_found_handler, workflow_validation_handler
from salesmeraki_workflows.web.repository import WorkflowRepository

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

__all__ = ["REPOSITORY_DEPENDENCY_KEY", "WorkflowApiPlugin"]

REPOSITORY_DEPENDENCY_KEY = "workflow_repository"


class WorkflowApiPlugin(InitPluginProtocol):
    """Litestar plugin for the workflow API.

    Example:
        Serving the API with a pre-populated repository::

            from litestar import Litestar
            from salesmeraki_workflows import WorkflowApiConfig, WorkflowApiPlugin
            from salesmeraki_workflows.web import WorkflowRepository, seed_demo_workflows

            repository = WorkflowRepository()
            seed_demo_workflows(repository)

            app = Litestar(plugins=[WorkflowApiPlugin(WorkflowApiConfig(repository=repository))])

        Using the repository in another route handler::

            @get("/reports/workflow-count")
            async def workflow_count(workflow_repository: WorkflowRepository) -> dict[str, int]:
                return {"count": len(workflow_repository)}
    """

    __slots__ = ("_config", "_repository")

    def __init__(self, config: WorkflowApiConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or WorkflowApiConfig()
        self._repository: WorkflowRepository | None = None

    @property
    def repository(self) -> WorkflowRepository:
        """Get the workflow repository.

        Returns:
            The WorkflowRepository instance.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._repository is None:
            msg = "WorkflowApiPlugin has not been initialized. Access repository after app creation."
            raise RuntimeError(msg)
        return self._repository

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Register the repository dependency and the API router.

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.
        """
        self._repository = self._config.repository if self._config.repository is not None else WorkflowRepository()

        def provide_repository() -> WorkflowRepository:
            return self._repository  # type: ignore[return-value]

        app_config.dependencies[REPOSITORY_DEPENDENCY_KEY] = Provide(provide_repository, sync_to_thread=False)

        api_router = Router(
            path=self._config.path_prefix,
            route_handlers=[WorkflowController, AbTestController, AiController, health],
            guards=self._config.guards,
            tags=self._config.tags,
            include_in_schema=self._config.include_in_schema,
            middleware=[
                DefineMiddleware(
                    BearerTokenAuthMiddleware,
                    tokens=self._config.tokens,
                    allow_any_token=self._config.allow_any_token,
                )
            ],
            exception_handlers={
                WorkflowNotFoundError: workflow_not_found_handler,
                AbTestNotFoundError: workflow_not_found_handler,
                WorkflowValidationError: workflow_validation_handler,
            },
        )
        app_config.route_handlers.append(api_router)

        return app_config
