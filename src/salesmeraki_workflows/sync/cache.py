"""Client-side workflow cache.

The cache is a string key-value store holding JSON documents under three keys:

* ``workflowsCache``: the workflow collection.
* ``workflowData``: the builder's last snapshot of the workflow being edited.
* ``workflowSteps``: the builder's step list, written on every step edit.

Read failures yield empty results and write failures return ``False``. Both
are logged and never raised, since the cache is a best-effort fallback.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from salesmeraki_workflows.core.models import Workflow, WorkflowStep
from salesmeraki_workflows.core.merge import upsert_workflow
from salesmeraki_workflows.exceptions import WorkflowsError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

__all__ = ["JsonFileStore", "KeyValueStore", "MemoryStore", "WorkflowCache"]

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """String key-value storage with browser local-storage semantics."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """In-process :class:`KeyValueStore`."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStore:
    """:class:`KeyValueStore` persisted as one JSON object on disk.

    Writes go to a temporary file that replaces the target, so a crash never
    leaves a half-written document behind.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            msg = f"{self.path} does not contain a JSON object"
            raise ValueError(msg)
        return data

    def _dump(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle)
            Path(tmp_name).replace(self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._dump(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if items.pop(key, None) is not None:
            self._dump(items)


class WorkflowCache:
    """Typed access to the cached workflow documents.

    Args:
        store: Backing key-value store.
    """

    COLLECTION_KEY = "workflowsCache"
    SNAPSHOT_KEY = "workflowData"
    STEPS_KEY = "workflowSteps"

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.store: KeyValueStore = store if store is not None else MemoryStore()

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.store.get_item(key)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s from cache: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Discarding unparsable %s cache entry: %s", key, e)
            return None

    def _write_json(self, key: str, value: Any) -> bool:
        try:
            self.store.set_item(key, json.dumps(value))
        except (OSError, TypeError, ValueError) as e:
            logger.error("Could not write %s to cache: %s", key, e)
            return False
        return True

    def read_workflows(self) -> list[Workflow]:
        """Cached workflow collection; malformed entries are skipped."""
        data = self._read_json(self.COLLECTION_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring %s cache entry that is not a list", self.COLLECTION_KEY)
            return []
        workflows: list[Workflow] = []
        for entry in data:
            try:
                workflows.append(Workflow.from_dict(entry))
            except (WorkflowsError, KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping cached workflow that cannot be loaded: %s", e)
        return workflows

    def write_workflows(self, workflows: Iterable[Workflow]) -> bool:
        """Replace the cached collection."""
        return self._write_json(self.COLLECTION_KEY, [workflow.to_dict() for workflow in workflows])

    def upsert(self, workflow: Workflow, *, replaces: str | None = None) -> list[Workflow]:
        """Replace or append ``workflow`` in the cached collection and persist it.

        Returns:
            The updated collection, even when persisting it failed.
        """
        workflows = upsert_workflow(self.read_workflows(), workflow, replaces=replaces)
        self.write_workflows(workflows)
        return workflows

    def remove(self, workflow_id: str) -> list[Workflow]:
        """Drop ``workflow_id`` from the cached collection and persist it."""
        workflows = [workflow for workflow in self.read_workflows() if workflow.id != workflow_id]
        self.write_workflows(workflows)
        return workflows

    def write_snapshot(self, workflow: Workflow) -> bool:
        """Back up the workflow being edited, steps included."""
        wrote_steps = self.write_steps(workflow.steps)
        return self._write_json(self.SNAPSHOT_KEY, workflow.to_dict()) and wrote_steps

    def read_snapshot(self) -> Workflow | None:
        """The last builder backup, with steps taken from the step backup when present."""
        data = self._read_json(self.SNAPSHOT_KEY)
        if not isinstance(data, dict):
            return None
        steps = self.read_steps()
        try:
            workflow = Workflow.from_dict(data)
        except (WorkflowsError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Discarding builder snapshot that cannot be loaded: %s", e)
            return None
        if steps is not None:
            workflow.steps = steps
        return workflow

    def write_steps(self, steps: Sequence[WorkflowStep]) -> bool:
        return self._write_json(self.STEPS_KEY, [step.to_dict() for step in steps])

    def read_steps(self) -> list[WorkflowStep] | None:
        data = self._read_json(self.STEPS_KEY)
        if not isinstance(data, list):
            return None
        try:
            return [WorkflowStep.from_dict(entry) for entry in data]
        except (WorkflowsError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Discarding step backup that cannot be loaded: %s", e)
            return None

    def clear_snapshot(self) -> None:
        for key in (self.SNAPSHOT_KEY, self.STEPS_KEY):
            try:
                self.store.remove_item(key)
            except OSError as e:
                logger.warning("Could not clear %s from cache: %s", key, e)
