"""Serialize the license summary."""

from __future__ import annotations

import json
from pathlib import Path

from bundlekit.engines.license_aggregator.models import Summary


def summary_to_json(summary: Summary) -> str:
    """Deterministic JSON: keys sorted so identical inputs give identical bytes."""
    payload = {key: summary[key].to_dict() for key in sorted(summary)}
    return json.dumps(payload, sort_keys=True, ensure_ascii=False)


def write_summary(summary: Summary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(summary_to_json(summary), encoding="utf-8")
