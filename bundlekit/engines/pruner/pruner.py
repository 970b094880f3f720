"""Prune dependency manifests down to the externals allow-list."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from bundlekit.core.config import BuildMode
from bundlekit.engines.pruner.models import Manifest, PrunedManifests

log = structlog.get_logger("bundlekit.engine.pruner")


def _retain(manifest: Mapping[str, str] | None, externals: frozenset[str]) -> Manifest:
    return {name: spec for name, spec in (manifest or {}).items() if name in externals}


def prune(
    full_manifest: Mapping[str, str] | None,
    externals: Iterable[str],
    dev_manifest: Mapping[str, str] | None,
    mode: BuildMode,
) -> PrunedManifests:
    """Keep only manifest entries whose name is in *externals*.

    The development manifest is dropped entirely (``dev=None``) for production
    builds. Duplicate names across the two manifests are the caller's problem.
    """
    allowed = frozenset(externals)
    runtime = _retain(full_manifest, allowed)
    dev = None if mode is BuildMode.PRODUCTION else _retain(dev_manifest, allowed)

    log.debug(
        "pruner.pruned",
        mode=mode.value,
        runtime_kept=len(runtime),
        runtime_total=len(full_manifest or {}),
        dev_kept=None if dev is None else len(dev),
    )
    return PrunedManifests(runtime=runtime, dev=dev)


def build_descriptor(
    original: Mapping[str, Any],
    pruned: PrunedManifests,
    product_name: str,
) -> dict[str, Any]:
    """Return a copy of *original* with the pruned dependency sets merged in."""
    descriptor = dict(original)
    descriptor["productName"] = product_name
    descriptor["dependencies"] = dict(pruned.runtime)
    if pruned.dev is None:
        descriptor.pop("devDependencies", None)
    else:
        descriptor["devDependencies"] = dict(pruned.dev)
    return descriptor


def needs_install(pruned: PrunedManifests) -> bool:
    """Whether the output package has anything for the installer to fetch."""
    return not pruned.is_empty
