"""Dependency pruner engine: reduce an app manifest to its externals."""

from bundlekit.engines.pruner.loaders import load_externals, load_manifest
from bundlekit.engines.pruner.models import Manifest, PrunedManifests
from bundlekit.engines.pruner.pruner import build_descriptor, needs_install, prune

__all__ = [
    "Manifest",
    "PrunedManifests",
    "build_descriptor",
    "load_externals",
    "load_manifest",
    "needs_install",
    "prune",
]
