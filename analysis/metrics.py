"""Helpers for reading call-edge metrics out of profiling payloads."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import cast


EDGE_SEPARATOR = "==>"
ROOT_SYMBOL = "main()"


def parse_edge(key: str) -> tuple[str | None, str]:
    """Split ``"parent==>child"`` into its parts; a bare symbol has no parent."""
    if EDGE_SEPARATOR in key:
        parent, child = key.split(EDGE_SEPARATOR, 1)
        return parent, child
    return None, key


def numeric_metrics(value: object) -> dict[str, float]:
    """Return the numeric entries of a metric mapping, ignoring everything else."""
    if not isinstance(value, Mapping):
        return {}
    metrics: dict[str, float] = {}
    for key, item in cast(Mapping[object, object], value).items():
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            continue
        metrics[str(key)] = item
    return metrics


def iter_edges(payload: object) -> Iterator[tuple[str, dict[str, float]]]:
    """Yield ``(edge, metrics)`` pairs for every mapping-valued entry."""
    if not isinstance(payload, Mapping):
        return
    for key, value in cast(Mapping[object, object], payload).items():
        if isinstance(value, Mapping):
            yield str(key), numeric_metrics(value)


def sum_metrics(payload: object) -> dict[str, float]:
    totals: dict[str, float] = {}
    for _, metrics in iter_edges(payload):
        for name, value in metrics.items():
            totals[name] = totals.get(name, 0) + value
    return totals


def root_metrics(payload: object, root: str = ROOT_SYMBOL) -> dict[str, float]:
    if not isinstance(payload, Mapping):
        return {}
    return numeric_metrics(cast(Mapping[object, object], payload).get(root))
