"""Application factory for the mock workflow API.

Run with ``litestar --app salesmeraki_workflows.app:app run`` or
``python -m salesmeraki_workflows.app``.
"""

from __future__ import annotations

import logging

from litestar import Litestar
from litestar.logging import LoggingConfig

from salesmeraki_workflows.plugin import WorkflowApiPlugin
from salesmeraki_workflows.settings import ServiceSettings
from salesmeraki_workflows.web.config import WorkflowApiConfig
from salesmeraki_workflows.web.repository import WorkflowRepository, seed_demo_workflows

__all__ = ["app", "create_app"]

logger = logging.getLogger(__name__)


def create_app(
    settings: ServiceSettings | None = None,
    *,
    repository: WorkflowRepository | None = None,
) -> Litestar:
    """Build the Litestar application.

    Args:
        settings: Service settings. Read from the environment when omitted.
        repository: Repository to serve. A new one is created when omitted.

    Returns:
        The configured application.
    """
    settings = settings or ServiceSettings()
    repository = repository if repository is not None else WorkflowRepository()
    if settings.seed_demo_data and not len(repository):
        seed_demo_workflows(repository)

    tokens = {}
    for token, member_id in settings.api_tokens.items():
        member = repository.team_member(member_id)
        if member is None:
            logger.warning("Ignoring API token for unknown team member %s", member_id)
            continue
        tokens[token] = member

    logging_config = LoggingConfig(
        root={"level": settings.log_level, "handlers": ["queue_listener"]},
        loggers={"salesmeraki_workflows": {"level": settings.log_level, "propagate": True}},
    )
    return Litestar(
        debug=settings.debug,
        logging_config=logging_config,
        plugins=[
            WorkflowApiPlugin(
                WorkflowApiConfig(
                    repository=repository,
                    tokens=tokens,
                    allow_any_token=not settings.api_tokens,
                )
            )
        ],
    )


app = create_app()

if __name__ == "__main__":
    import uvicorn

    service_settings = ServiceSettings()
    uvicorn.run(app, host=service_settings.host, port=service_settings.port)
