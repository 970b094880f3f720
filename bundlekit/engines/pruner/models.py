"""Data models for the dependency pruner engine."""

from __future__ import annotations

from dataclasses import dataclass

# package name -> version specifier, in source order
Manifest = dict[str, str]


@dataclass(frozen=True)
class PrunedManifests:
    """Allow-listed subsets of the runtime and development manifests.

    ``dev`` is ``None`` for production builds: the key must be dropped from
    the output descriptor, not serialized as an empty object.
    """

    runtime: Manifest
    dev: Manifest | None

    @property
    def is_empty(self) -> bool:
        return not self.runtime and not self.dev
