"""Exception handlers mapping workflow errors to HTTP responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from litestar import MediaType, Response
from litestar.status_codes import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request

    from salesmeraki_workflows.exceptions import AbTestNotFoundError, WorkflowNotFoundError, WorkflowValidationError

__all__ = ["workflow_not_found_handler", "workflow_validation_handler"]


def workflow_not_found_handler(
    _: Request[Any, Any, Any], exc: WorkflowNotFoundError | AbTestNotFoundError
) -> Response[dict[str, Any]]:
    """Render a missing workflow or A/B test as 404."""
    return Response(
        content={"status_code": HTTP_404_NOT_FOUND, "detail": str(exc)},
        status_code=HTTP_404_NOT_FOUND,
        media_type=MediaType.JSON,
    )


def workflow_validation_handler(_: Request[Any, Any, Any], exc: WorkflowValidationError) -> Response[dict[str, Any]]:
    """Render field errors as 400, keeping the per-field messages."""
    return Response(
        content={"status_code": HTTP_400_BAD_REQUEST, "detail": str(exc), "errors": exc.errors},
        status_code=HTTP_400_BAD_REQUEST,
        media_type=MediaType.JSON,
    )
