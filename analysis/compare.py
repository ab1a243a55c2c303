"""Run comparison over stored profiling payloads."""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from store.base import RunStore

from .metrics import iter_edges, parse_edge, sum_metrics

logger = logging.getLogger(__name__)


class RunComparator:

    def __init__(self, store: RunStore):
        self.store = store

    def _load(self, run_id: str, namespace: str, warnings: list[str]) -> Mapping[str, Any] | None:
        result = self.store.get(run_id, namespace)
        if not result.found:
            warning_msg = f"Run not found: {run_id} ({namespace})"
            logger.warning(warning_msg)
            warnings.append(warning_msg)
            return None
        if not isinstance(result.payload, Mapping):
            warning_msg = f"Run {run_id} does not hold a call-edge mapping"
            logger.warning(warning_msg)
            warnings.append(warning_msg)
            return None
        return result.payload

    def compare(self, run_id_1: str, run_id_2: str, namespace: str) -> dict[str, Any]:
        """Diff two runs of ``namespace`` edge by edge.

        Edges missing from one run count as zero on that side. Only numeric
        metrics are compared.
        """
        warnings: list[str] = []
        payload_1 = self._load(run_id_1, namespace, warnings)
        payload_2 = self._load(run_id_2, namespace, warnings)

        comparison: dict[str, Any] = {
            "namespace": namespace,
            "runs": [run_id_1, run_id_2],
        }
        if warnings:
            comparison["warnings"] = warnings
        if payload_1 is None or payload_2 is None:
            comparison["edges"] = []
            comparison["totals"] = {}
            return comparison

        edges_1 = dict(iter_edges(payload_1))
        edges_2 = dict(iter_edges(payload_2))

        edges = []
        for edge in sorted(set(edges_1) | set(edges_2)):
            metrics_1 = edges_1.get(edge, {})
            metrics_2 = edges_2.get(edge, {})
            parent, child = parse_edge(edge)
            edges.append(
                {
                    "edge": edge,
                    "parent": parent,
                    "child": child,
                    "status": _edge_status(edge in edges_1, edge in edges_2),
                    "metrics": _diff_metrics(metrics_1, metrics_2),
                }
            )

        comparison["edges"] = edges
        comparison["totals"] = _diff_metrics(sum_metrics(payload_1), sum_metrics(payload_2))
        return comparison

    def export_json(self, comparison: dict[str, Any], output_path: Path) -> None:
        with open(output_path, "w") as f:
            json.dump(comparison, f, indent=2)

    def export_csv(self, comparison: dict[str, Any], output_path: Path) -> None:
        edges = comparison.get("edges", [])

        if not edges:
            return

        metric_names = sorted({name for edge in edges for name in edge["metrics"]})
        fieldnames = ["edge", "parent", "child", "status"]
        for name in metric_names:
            fieldnames.extend([f"{name}_1", f"{name}_2", f"{name}_delta"])

        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()

            for edge in edges:
                row = {key: edge[key] for key in ("edge", "parent", "child", "status")}
                for name in metric_names:
                    values = edge["metrics"].get(name, {"run_1": 0, "run_2": 0, "delta": 0})
                    row[f"{name}_1"] = values["run_1"]
                    row[f"{name}_2"] = values["run_2"]
                    row[f"{name}_delta"] = values["delta"]
                writer.writerow(row)


def _edge_status(in_first: bool, in_second: bool) -> str:
    if in_first and in_second:
        return "common"
    if in_first:
        return "removed"
    return "added"


def _diff_metrics(
    metrics_1: Mapping[str, float], metrics_2: Mapping[str, float]
) -> dict[str, dict[str, float]]:
    diff = {}
    for name in sorted(set(metrics_1) | set(metrics_2)):
        value_1 = metrics_1.get(name, 0)
        value_2 = metrics_2.get(name, 0)
        diff[name] = {"run_1": value_1, "run_2": value_2, "delta": value_2 - value_1}
    return diff
