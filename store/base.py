"""Run store interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from .errors import StoreError
from .models import RunEntry, RunResult


class RunStore(ABC):
    """Abstract interface for saving and fetching profiling runs.

    Implementations persist one payload per ``(run_id, namespace)`` pair;
    saving an existing pair overwrites it.
    """

    last_error: StoreError | None = None

    @abstractmethod
    def save(self, payload: object, namespace: str, run_id: str | None = None) -> str:
        """Persist ``payload`` and return the run id used.

        A fresh id is generated when ``run_id`` is omitted. Write failures
        are reported through ``last_error`` and the attempted id is still
        returned.

        Raises:
            InvalidRunKey: If the run id or namespace cannot be stored.
            UnserializablePayload: If the payload holds a value the codec
                cannot encode.
        """

    @abstractmethod
    def get(self, run_id: str, namespace: str) -> RunResult:
        """Fetch a run; a missing run yields a result carrying ``NotFound``."""

    @abstractmethod
    def exists(self, run_id: str, namespace: str) -> bool:
        """Return True if a run is stored for the pair."""


@runtime_checkable
class RunCatalog(Protocol):
    """Listing queries exposed to presentation layers."""

    def list_sources(self) -> list[str]: ...

    def list_runs(self, namespace: str | None = None) -> list[RunEntry]: ...

    def list_by_namespace(self) -> dict[str, list[RunEntry]]: ...


def group_by_namespace(entries: list[RunEntry]) -> dict[str, list[RunEntry]]:
    """Group entries by namespace, keeping their order within each group.

    Groups are ordered by the position of their first entry, so for a most
    recent first listing the most recently active namespace comes first.
    """
    groups: dict[str, list[RunEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.namespace, []).append(entry)
    return groups
