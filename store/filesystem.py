"""Filesystem-backed run store: one file per run in a flat directory."""

from __future__ import annotations

import logging
import os
import tempfile
import warnings
from pathlib import Path

from .base import RunStore, group_by_namespace
from .codec import dumps, loads
from .ids import RunIdGenerator
from .errors import (
    ConfigurationWarning,
    MalformedFilename,
    NotFound,
    ReadFailure,
    UnserializablePayload,
    WriteFailure,
)
from .models import RunEntry, RunResult, describe_invalid_run, describe_run, utc_from_timestamp
from .naming import RUN_SUFFIX, is_valid_key, parse_run_filename, run_path, validate_key

logger = logging.getLogger(__name__)

# os.umask can only be read by setting it.
_UMASK = os.umask(0)
os.umask(_UMASK)
RUN_FILE_MODE = 0o666 & ~_UMASK


def resolve_output_dir(
    output_dir: str | Path | None,
    fallback_dir: str | Path | None = None,
) -> Path:
    """Pick the run directory: explicit dir, configured default, then temp dir."""
    if output_dir:
        return Path(output_dir)
    if fallback_dir:
        return Path(fallback_dir)
    temp_dir = Path(tempfile.gettempdir())
    message = (
        f"No directory configured for profiling runs, using {temp_dir}. "
        "Pass output_dir to the store or set PROFRUNS_OUTPUT_DIR."
    )
    logger.warning(message)
    warnings.warn(message, ConfigurationWarning, stacklevel=3)
    return temp_dir


class FileRunStore(RunStore):
    """Stores each run as ``<run_id>.<namespace>.<suffix>`` in ``output_dir``."""

    output_dir: Path
    suffix: str
    atomic_writes: bool
    strict: bool

    def __init__(
        self,
        output_dir: str | Path | None = None,
        *,
        fallback_dir: str | Path | None = None,
        suffix: str = RUN_SUFFIX,
        atomic_writes: bool = True,
        strict: bool = False,
    ) -> None:
        self.output_dir = resolve_output_dir(output_dir, fallback_dir)
        self.suffix = suffix
        self.atomic_writes = atomic_writes
        self.strict = strict
        self.last_error = None
        self._generate_id = RunIdGenerator()

    def generate_run_id(self) -> str:
        """Return a time-based id, strictly increasing for this instance."""
        return self._generate_id()

    def run_path(self, run_id: str, namespace: str) -> Path:
        return run_path(self.output_dir, run_id, namespace, self.suffix)

    def save(self, payload: object, namespace: str, run_id: str | None = None) -> str:
        validate_key(namespace, "namespace")
        if run_id is None:
            run_id = self.generate_run_id()
        path = self.run_path(run_id, namespace)
        try:
            data = dumps(payload)
        except TypeError as e:
            raise UnserializablePayload(run_id, namespace, str(e)) from e

        try:
            if self.atomic_writes:
                self._write_atomic(path, data)
            else:
                with open(path, "w", encoding="utf-8") as f:
                    f.write(data)
        except OSError as e:
            failure = WriteFailure(run_id, namespace, str(path), e.strerror or str(e))
            self.last_error = failure
            logger.error(str(failure))
            if self.strict:
                raise failure from e
            return run_id

        self.last_error = None
        logger.debug(f"Saved run {run_id} ({namespace}) to {path}")
        return run_id

    def _write_atomic(self, path: Path, data: str) -> None:
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.chmod(temp_name, RUN_FILE_MODE)
            os.replace(temp_name, path)
        except BaseException:
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise

    def exists(self, run_id: str, namespace: str) -> bool:
        if not (is_valid_key(run_id) and is_valid_key(namespace)):
            return False
        return self.run_path(run_id, namespace).is_file()

    def get(self, run_id: str, namespace: str) -> RunResult:
        if not self.exists(run_id, namespace):
            logger.warning(f"Could not find run {run_id} in namespace {namespace} under {self.output_dir}")
            return RunResult(None, describe_invalid_run(run_id), NotFound(run_id, namespace))

        path = self.run_path(run_id, namespace)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            logger.warning(f"Run file disappeared before it could be read: {path}")
            return RunResult(None, describe_invalid_run(run_id), NotFound(run_id, namespace))
        except OSError as e:
            failure = ReadFailure(run_id, namespace, e.strerror or str(e))
            logger.error(str(failure))
            return RunResult(None, describe_invalid_run(run_id), failure)

        try:
            payload = loads(raw.decode("utf-8"))
        except ValueError as e:
            failure = ReadFailure(run_id, namespace, str(e))
            logger.error(str(failure))
            return RunResult(None, describe_invalid_run(run_id), failure)

        return RunResult(payload, describe_run(namespace))

    def list_files(self) -> list[Path]:
        """Return run files, most recently modified first."""
        if not self.output_dir.is_dir():
            return []

        stamped: list[tuple[float, str, Path]] = []
        for path in self.output_dir.glob(f"*.{self.suffix}"):
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue
            if not path.is_file():
                continue
            stamped.append((stat.st_mtime, path.name, path))

        stamped.sort(key=lambda item: (-item[0], item[1]))
        return [path for _, _, path in stamped]

    def _scan_entries(self) -> list[RunEntry]:
        entries: list[RunEntry] = []
        for path in self.list_files():
            try:
                run_id, namespace = parse_run_filename(path, self.suffix)
                modified = path.stat().st_mtime
            except MalformedFilename as e:
                logger.debug(f"Skipping {path.name}: {e.reason}")
                continue
            except FileNotFoundError:
                continue
            entries.append(
                RunEntry(
                    id=run_id,
                    namespace=namespace,
                    filepath=str(path),
                    modified_time=utc_from_timestamp(modified),
                )
            )
        return entries

    def list_runs(self, namespace: str | None = None) -> list[RunEntry]:
        entries = self._scan_entries()
        if namespace is None:
            return entries
        return [entry for entry in entries if entry.namespace == namespace]

    def list_by_namespace(self) -> dict[str, list[RunEntry]]:
        return group_by_namespace(self._scan_entries())

    def list_sources(self) -> list[str]:
        return list(self.list_by_namespace())
