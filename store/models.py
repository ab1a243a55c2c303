"""Value types returned by run stores."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import StoreError


def describe_run(namespace: str) -> str:
    return f"Run in namespace {namespace}"


def describe_invalid_run(run_id: str) -> str:
    return f"Invalid run id {run_id}"


def utc_from_timestamp(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class RunEntry:
    """One stored run as seen by a directory or table scan."""

    id: str
    namespace: str
    filepath: str
    modified_time: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "namespace": self.namespace,
            "filepath": self.filepath,
            "modified_time": self.modified_time.isoformat(),
        }


@dataclass(frozen=True)
class RunResult:
    """Outcome of fetching a run.

    ``payload`` is ``None`` whenever ``error`` is set; callers should check
    :attr:`found` before using it.
    """

    payload: object
    description: str
    error: StoreError | None = None

    @property
    def found(self) -> bool:
        return self.error is None

    def as_tuple(self) -> tuple[object, str]:
        return self.payload, self.description
