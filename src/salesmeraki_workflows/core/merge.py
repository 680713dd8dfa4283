"""Reconciliation of the cached workflow collection with the server's.

Conflict resolution is last-write-wins on ``updated_at``. There is no version
vector, so two clients editing the same workflow concurrently can overwrite
each other; the later timestamp always survives.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from salesmeraki_workflows.core.clock import epoch_millis, parse_timestamp, utc_now
from salesmeraki_workflows.core.models import LOCAL_ID_PREFIX

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from salesmeraki_workflows.core.models import Workflow

__all__ = ["filter_by_name", "merge_workflows", "new_local_id", "upsert_workflow"]


def merge_workflows(cached: Iterable[Workflow], remote: Iterable[Workflow]) -> list[Workflow]:
    """Merge a cached collection into the server's collection.

    The result starts as the remote list. Each cached entry is then folded in:

    * ``local-`` entries are appended unless the id is already present.
    * Entries unknown to the server are appended.
    * Entries known to both replace the remote copy in place only when the
      cached ``updated_at`` is strictly newer. Ties keep the remote copy.

    The function is pure and idempotent: merging the server's collection into
    an already merged list changes nothing, i.e.
    ``merge_workflows(merge_workflows(cached, remote), remote) == merge_workflows(cached, remote)``.

    Args:
        cached: Workflows read from the client cache.
        remote: Workflows returned by the server.

    Returns:
        A new list in remote order followed by appended cached entries.
    """
    merged = list(remote)
    index = {workflow.id: position for position, workflow in enumerate(merged)}

    for local in cached:
        position = index.get(local.id)
        if position is None:
            index[local.id] = len(merged)
            merged.append(local)
            continue
        if local.is_local:
            continue
        if parse_timestamp(local.updated_at) > parse_timestamp(merged[position].updated_at):
            merged[position] = local

    return merged


def upsert_workflow(
    collection: Iterable[Workflow],
    workflow: Workflow,
    *,
    replaces: str | None = None,
) -> list[Workflow]:
    """Replace the entry sharing ``workflow.id`` or append ``workflow``.

    Args:
        collection: Current workflows.
        workflow: The saved workflow.
        replaces: Id of a superseded entry to drop, used when a ``local-``
            workflow is promoted to a server id.

    Returns:
        A new list; ``collection`` is not modified.
    """
    result = [
        existing for existing in collection if not (replaces and replaces != workflow.id and existing.id == replaces)
    ]
    for position, existing in enumerate(result):
        if existing.id == workflow.id:
            result[position] = workflow
            return result
    result.append(workflow)
    return result


def filter_by_name(workflows: Iterable[Workflow], term: str) -> list[Workflow]:
    """Workflows whose name contains ``term``, ignoring case."""
    needle = term.casefold()
    return [workflow for workflow in workflows if needle in workflow.name.casefold()]


def new_local_id(moment: datetime | None = None) -> str:
    """Id for a workflow saved only to the cache: ``local-<epoch millis>``."""
    return f"{LOCAL_ID_PREFIX}{epoch_millis(moment or utc_now())}"
