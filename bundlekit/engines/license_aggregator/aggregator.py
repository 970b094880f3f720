"""LicenseAggregator: check phase, full phase, host project injection."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import structlog

from bundlekit.core.config import BuildConfig, HostProject
from bundlekit.engines.license_aggregator.classifier import is_permissive
from bundlekit.engines.license_aggregator.models import LicenseRecord, Summary
from bundlekit.engines.license_aggregator.overrides import (
    LicenseOverride,
    apply_overrides,
    find_override,
    load_overrides,
)
from bundlekit.engines.license_aggregator.scanner import scan_dependencies
from bundlekit.exceptions import LicenseError

log = structlog.get_logger("bundlekit.engine.licenses")


def inject_host_entry(
    summary: Mapping[str, LicenseRecord], host: HostProject, license_path: Path
) -> Summary:
    """Return *summary* plus the host project's own entry.

    The license text is read from *license_path* at call time; an unreadable
    file raises ``OSError``, since the report would otherwise be incomplete.
    """
    license_text = license_path.read_text(encoding="utf-8")
    result = dict(summary)
    result[host.key] = LicenseRecord(
        repository=host.repository,
        license=host.license,
        source=host.source_url,
        source_text=license_text,
    )
    return result


class LicenseAggregator:
    """Consolidate dependency licenses and refuse to report unapproved ones."""

    def __init__(
        self,
        host: HostProject,
        license_path: Path,
        overrides: Mapping[str, LicenseOverride] | None = None,
        overrides_path: Path | None = None,
        include_dev: bool = False,
    ) -> None:
        self._host = host
        self._license_path = license_path
        self._overrides = dict(overrides or {})
        self._overrides_path = overrides_path
        self._include_dev = include_dev

    @classmethod
    def from_config(cls, config: BuildConfig) -> LicenseAggregator:
        return cls(
            host=config.host,
            license_path=config.license_path,
            overrides=load_overrides(config.overrides_path),
            overrides_path=config.overrides_path,
            include_dev=config.include_dev_licenses,
        )

    # ── phases ───────────────────────────────────────────────────────────

    def check(self, project_path: Path) -> Summary:
        """Omit-permissive phase: only entries still unknown or non-permissive after overrides."""
        packages = scan_dependencies(project_path, include_dev=self._include_dev)
        resolved = apply_overrides(packages, self._overrides)
        flagged = {
            key: record
            for key, record in resolved.items()
            if not self._has_override(key) and not is_permissive(record.license)
        }
        log.info("licenses.checked", scanned=len(resolved), flagged=len(flagged))
        return flagged

    def summarize(self, project_path: Path) -> Summary:
        """Full phase: every dependency's resolved record."""
        packages = scan_dependencies(project_path, include_dev=self._include_dev)
        return apply_overrides(packages, self._overrides, warn_stale=False)

    def aggregate(self, project_path: Path) -> Summary:
        """Run the check phase, then the full phase, then add the host entry.

        Raises ``LicenseError(UNAPPROVED_LICENSES)`` without producing a
        summary when the check phase flags anything.
        """
        flagged = self.check(project_path)
        if flagged:
            for key, record in sorted(flagged.items()):
                log.warning(
                    "licenses.unapproved",
                    package=key,
                    license=record.license,
                    repository=record.repository,
                )
            overrides_path = str(self._overrides_path) if self._overrides_path else None
            raise LicenseError.unapproved(flagged, overrides_path)

        summary = self.summarize(project_path)
        summary = inject_host_entry(summary, self._host, self._license_path)
        log.info("licenses.aggregated", entries=len(summary), host=self._host.key)
        return summary

    def _has_override(self, key: str) -> bool:
        # An explicit override is an approval, whatever license it asserts.
        name, _, version = key.rpartition("@")
        return find_override(self._overrides, name, version) is not None
