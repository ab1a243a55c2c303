"""Error kinds raised or reported by run stores."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for run store errors."""


class WriteFailure(StoreError):
    """The backing medium rejected a write; the run was not persisted."""

    def __init__(self, run_id: str, namespace: str, location: str, reason: str) -> None:
        self.run_id = run_id
        self.namespace = namespace
        self.location = location
        self.reason = reason
        super().__init__(f"Could not write run {run_id} ({namespace}) to {location}: {reason}")


class NotFound(StoreError):
    """No run exists for the requested id and namespace."""

    def __init__(self, run_id: str, namespace: str) -> None:
        self.run_id = run_id
        self.namespace = namespace
        super().__init__(f"Run {run_id} not found in namespace {namespace}")


class ReadFailure(StoreError):
    """A stored run exists but its content could not be decoded."""

    def __init__(self, run_id: str, namespace: str, reason: str) -> None:
        self.run_id = run_id
        self.namespace = namespace
        self.reason = reason
        super().__init__(f"Could not read run {run_id} ({namespace}): {reason}")


class MalformedFilename(StoreError):
    """A file name does not follow the <id>.<namespace>.<suffix> grammar."""

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"Malformed run filename {filename!r}: {reason}")


class InvalidRunKey(StoreError, ValueError):
    """A run id or namespace cannot be encoded safely."""


class ConfigurationWarning(UserWarning):
    """Store configuration fell back to a location not meant for runs."""


class UnserializablePayload(StoreError, TypeError):
    """The payload holds a value the store codec cannot encode."""

    def __init__(self, run_id: str, namespace: str, reason: str) -> None:
        self.run_id = run_id
        self.namespace = namespace
        self.reason = reason
        super().__init__(f"Cannot serialize run {run_id} ({namespace}): {reason}")
