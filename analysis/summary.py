"""Runs summary table over a run catalog."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any

from store.base import RunCatalog, RunStore
from store.models import RunEntry

from .metrics import ROOT_SYMBOL, iter_edges, root_metrics, sum_metrics

logger = logging.getLogger(__name__)


FIELDNAMES = [
    "run_id",
    "namespace",
    "modified_time",
    "edge_count",
    "total_ct",
    "total_wt",
    "root_wt",
    "filepath",
]


class RunsSummarizer:
    """Loads every listed run and collects a summary row for it."""

    def __init__(self, store: RunStore, root_symbol: str = ROOT_SYMBOL):
        """Initialize summarizer with a store that also answers listing queries.

        Args:
            store: Run store implementing the RunCatalog queries
            root_symbol: Payload key holding whole-run metrics
        """
        if not isinstance(store, RunCatalog):
            raise TypeError(f"{type(store).__name__} does not support run listing")
        self.store = store
        self.root_symbol = root_symbol

    def scan_runs(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """Summarize stored runs.

        Args:
            namespace: Restrict the scan to one namespace

        Returns:
            List of run summaries, most recent first
        """
        runs = []

        for entry in self.store.list_runs(namespace):
            try:
                summary = self._process_run(entry)
            except Exception as e:
                logger.warning(f"Failed to process run {entry.id} ({entry.namespace}): {e}")
                continue
            if summary:
                runs.append(summary)

        return runs

    def _process_run(self, entry: RunEntry) -> dict[str, Any] | None:
        result = self.store.get(entry.id, entry.namespace)
        if not result.found:
            logger.warning(f"Skipping {entry.id} ({entry.namespace}): {result.error}")
            return None

        totals = sum_metrics(result.payload)
        root = root_metrics(result.payload, self.root_symbol)

        return {
            "run_id": entry.id,
            "namespace": entry.namespace,
            "modified_time": entry.modified_time.isoformat(),
            "edge_count": sum(1 for _ in iter_edges(result.payload)),
            "total_ct": totals.get("ct", 0),
            "total_wt": totals.get("wt", 0),
            "root_wt": root.get("wt"),
            "filepath": entry.filepath,
        }

    def export_csv(self, output_path: Path, namespace: str | None = None) -> None:
        """Export runs summary to CSV file.

        Args:
            output_path: Path to output CSV file
            namespace: Restrict the export to one namespace
        """
        runs = self.scan_runs(namespace)

        if not runs:
            return

        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            writer.writeheader()
            writer.writerows(runs)

    def export_json(self, output_path: Path, namespace: str | None = None) -> None:
        runs = self.scan_runs(namespace)

        with open(output_path, "w") as f:
            json.dump(runs, f, indent=2)
