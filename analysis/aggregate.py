"""Aggregate several stored runs into one averaged payload."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from tqdm import tqdm

from store.base import RunStore

from .metrics import iter_edges

logger = logging.getLogger(__name__)


@dataclass
class AggregateResult:
    payload: dict[str, dict[str, float]]
    run_ids: list[str]
    skipped: list[str] = field(default_factory=list)
    description: str = ""

    @property
    def run_count(self) -> int:
        return len(self.run_ids)


def aggregate_runs(
    store: RunStore,
    run_ids: Sequence[str],
    namespace: str,
    show_progress: bool = False,
) -> AggregateResult:
    """Average the call-edge metrics of ``run_ids`` in ``namespace``.

    Each numeric metric is summed over the runs that could be loaded and
    divided by their number. Runs that are missing or do not hold a mapping
    are skipped and reported in ``skipped``.
    """
    totals: dict[str, dict[str, float]] = {}
    loaded: list[str] = []
    skipped: list[str] = []

    for run_id in tqdm(run_ids, desc="Aggregating runs", disable=not show_progress):
        result = store.get(run_id, namespace)
        if not result.found or not isinstance(result.payload, Mapping):
            logger.warning(f"Skipping run {run_id} ({namespace}): {result.description}")
            skipped.append(run_id)
            continue
        loaded.append(run_id)
        for edge, metrics in iter_edges(result.payload):
            edge_totals = totals.setdefault(edge, {})
            for name, value in metrics.items():
                edge_totals[name] = edge_totals.get(name, 0) + value

    if loaded:
        count = len(loaded)
        payload = {
            edge: {name: value / count for name, value in metrics.items()}
            for edge, metrics in totals.items()
        }
    else:
        payload = {}

    description = f"Aggregated {len(loaded)} run(s) in namespace {namespace}"
    if skipped:
        description += f", skipped {len(skipped)}"
    return AggregateResult(payload=payload, run_ids=loaded, skipped=skipped, description=description)
