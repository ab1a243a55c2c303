"""
SQLite-backed run store.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import cast

from .base import RunStore, group_by_namespace
from .codec import dumps, loads
from .database import connect, initialize_database
from .errors import InvalidRunKey, NotFound, ReadFailure, UnserializablePayload, WriteFailure
from .ids import RunIdGenerator
from .models import RunEntry, RunResult, describe_invalid_run, describe_run, utc_from_timestamp

logger = logging.getLogger(__name__)


def _is_in_memory(db_path: str) -> bool:
    if db_path in ("", ":memory:"):
        return True
    if db_path.startswith("file:"):
        return ":memory:" in db_path or "mode=memory" in db_path
    return False


def _require_key(value: object, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidRunKey(f"{field} must be a non-empty string")
    return value


class SQLiteRunStore(RunStore):
    """Keeps every run as a row keyed by ``(run_id, namespace)``."""

    db_path: str
    strict: bool

    def __init__(
        self,
        db_path: str | Path = "runs.db",
        *,
        strict: bool = False,
    ) -> None:
        self.db_path = str(db_path)
        # Each query opens its own connection, so an in-memory schema would vanish.
        if _is_in_memory(self.db_path):
            raise ValueError(f"SQLiteRunStore needs an on-disk database, got {self.db_path!r}")
        self.strict = strict
        self.last_error = None
        self._generate_id = RunIdGenerator()
        initialize_database(self.db_path)

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        connection = connect(self.db_path)
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    def save(self, payload: object, namespace: str, run_id: str | None = None) -> str:
        _require_key(namespace, "namespace")
        if run_id is None:
            run_id = self._generate_id()
        _require_key(run_id, "run_id")
        try:
            data = dumps(payload)
        except TypeError as e:
            raise UnserializablePayload(run_id, namespace, str(e)) from e

        try:
            with self._session() as connection:
                _ = connection.execute(
                    """
                    INSERT OR REPLACE INTO runs (run_id, namespace, payload, modified_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (run_id, namespace, data, time.time()),
                )
        except sqlite3.Error as e:
            failure = WriteFailure(run_id, namespace, self.db_path, str(e))
            self.last_error = failure
            logger.error(str(failure))
            if self.strict:
                raise failure from e
            return run_id

        self.last_error = None
        return run_id

    def _fetch_payload(self, run_id: str, namespace: str) -> str | None:
        with self._session() as connection:
            row = cast(
                sqlite3.Row | None,
                connection.execute(
                    "SELECT payload FROM runs WHERE run_id = ? AND namespace = ?",
                    (run_id, namespace),
                ).fetchone(),
            )
        if row is None:
            return None
        return cast(str, row["payload"])

    def exists(self, run_id: str, namespace: str) -> bool:
        try:
            return self._fetch_payload(run_id, namespace) is not None
        except sqlite3.Error as e:
            logger.error(f"Could not query {self.db_path}: {e}")
            return False

    def get(self, run_id: str, namespace: str) -> RunResult:
        try:
            data = self._fetch_payload(run_id, namespace)
        except sqlite3.Error as e:
            failure = ReadFailure(run_id, namespace, str(e))
            logger.error(str(failure))
            return RunResult(None, describe_invalid_run(run_id), failure)

        if data is None:
            logger.warning(f"Could not find run {run_id} in namespace {namespace} in {self.db_path}")
            return RunResult(None, describe_invalid_run(run_id), NotFound(run_id, namespace))

        try:
            payload = loads(data)
        except ValueError as e:
            failure = ReadFailure(run_id, namespace, str(e))
            logger.error(str(failure))
            return RunResult(None, describe_invalid_run(run_id), failure)
        return RunResult(payload, describe_run(namespace))

    def list_runs(self, namespace: str | None = None) -> list[RunEntry]:
        query = "SELECT run_id, namespace, modified_at FROM runs"
        params: tuple[object, ...] = ()
        if namespace is not None:
            query += " WHERE namespace = ?"
            params = (namespace,)
        query += " ORDER BY modified_at DESC, rowid DESC"

        try:
            with self._session() as connection:
                rows = connection.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Could not list runs in {self.db_path}: {e}")
            return []

        return [
            RunEntry(
                id=cast(str, row["run_id"]),
                namespace=cast(str, row["namespace"]),
                filepath=self.db_path,
                modified_time=utc_from_timestamp(cast(float, row["modified_at"])),
            )
            for row in cast(list[sqlite3.Row], rows)
        ]

    def list_by_namespace(self) -> dict[str, list[RunEntry]]:
        return group_by_namespace(self.list_runs())

    def list_sources(self) -> list[str]:
        return list(self.list_by_namespace())
