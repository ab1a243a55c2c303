"""
Run filename grammar.

A run is stored as ``<run_id>.<namespace>.<suffix>``. Both fields are
validated on the way in so that parsing a name back is always the exact
inverse of building it.
"""

from __future__ import annotations

import os
from pathlib import Path

from .errors import InvalidRunKey, MalformedFilename


RUN_SUFFIX = "profrun"
SEPARATOR = "."

_FORBIDDEN = (SEPARATOR, "/", "\\", "\x00")


def validate_key(value: str, field: str) -> str:
    """Return ``value`` if it can be used as a filename field."""
    if not isinstance(value, str):
        raise InvalidRunKey(f"{field} must be a string, got {type(value).__name__}")
    if not value:
        raise InvalidRunKey(f"{field} must not be empty")
    for token in _FORBIDDEN:
        if token in value:
            raise InvalidRunKey(f"{field} must not contain {token!r}: {value!r}")
    return value


def is_valid_key(value: object) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return not any(token in value for token in _FORBIDDEN)


def run_filename(run_id: str, namespace: str, suffix: str = RUN_SUFFIX) -> str:
    validate_key(run_id, "run_id")
    validate_key(namespace, "namespace")
    return SEPARATOR.join((run_id, namespace, suffix))


def run_path(base_dir: str | Path, run_id: str, namespace: str, suffix: str = RUN_SUFFIX) -> Path:
    return Path(base_dir) / run_filename(run_id, namespace, suffix)


def parse_run_filename(filename: str | os.PathLike[str], suffix: str = RUN_SUFFIX) -> tuple[str, str]:
    """Split a run filename (or path) into ``(run_id, namespace)``.

    Raises:
        MalformedFilename: If the name does not carry exactly an id, a
            namespace and the expected suffix.
    """
    name = Path(filename).name
    tail = SEPARATOR + suffix
    if not name.endswith(tail):
        raise MalformedFilename(name, f"missing {tail!r} suffix")
    fields = name[: -len(tail)].split(SEPARATOR)
    if len(fields) != 2:
        raise MalformedFilename(name, f"expected 2 fields before suffix, found {len(fields)}")
    run_id, namespace = fields
    if not run_id or not namespace:
        raise MalformedFilename(name, "empty run id or namespace")
    return run_id, namespace
