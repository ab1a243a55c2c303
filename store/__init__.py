"""
Store Module

Run storage and persistence layer.

This module provides:
- Abstract RunStore interface for saving and fetching profiling runs
- Filesystem store keeping one file per run
- SQLite store keeping one row per run
- Payload codec with exact round-trip of nested data
- Listing, grouping and sorting queries over stored runs
"""

__version__ = "0.1.0"

from .base import RunCatalog, RunStore
from .config import StoreConfig, create_store, load_config, save_config
from .errors import (
    ConfigurationWarning,
    InvalidRunKey,
    MalformedFilename,
    NotFound,
    ReadFailure,
    StoreError,
    UnserializablePayload,
    WriteFailure,
)
from .filesystem import FileRunStore
from .models import RunEntry, RunResult
from .naming import RUN_SUFFIX
from .sqlite import SQLiteRunStore

__all__ = [
    "RunCatalog",
    "RunStore",
    "StoreConfig",
    "create_store",
    "load_config",
    "save_config",
    "ConfigurationWarning",
    "InvalidRunKey",
    "MalformedFilename",
    "NotFound",
    "ReadFailure",
    "StoreError",
    "UnserializablePayload",
    "WriteFailure",
    "FileRunStore",
    "RunEntry",
    "RunResult",
    "RUN_SUFFIX",
    "SQLiteRunStore",
]
