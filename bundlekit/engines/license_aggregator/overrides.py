"""Manual license overrides: corrections for packages detection gets wrong."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import structlog

from bundlekit.engines.license_aggregator.models import LicenseRecord, ScannedPackage, Summary
from bundlekit.exceptions import ConfigError

log = structlog.get_logger("bundlekit.engine.licenses")


@dataclass(frozen=True)
class LicenseOverride:
    license: str
    repository: str | None = None
    source: str | None = None
    source_text: str | None = None

    def apply(self, record: LicenseRecord) -> LicenseRecord:
        return LicenseRecord(
            repository=self.repository or record.repository,
            license=self.license,
            source=self.source or record.source,
            source_text=self.source_text if self.source_text is not None else record.source_text,
        )


# "name" or "name@version" -> override
OverrideTable = dict[str, LicenseOverride]


def load_overrides(path: Path | None) -> OverrideTable:
    """Load an override table from a JSON or TOML file.

    Values are either a license identifier or a table with ``license`` and
    optional ``repository``, ``source`` and ``sourceText``. ``None`` gives an
    empty table.
    """
    if path is None:
        return {}
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"license overrides file not found: {path}") from e

    try:
        if path.suffix == ".toml":
            raw: Any = tomllib.loads(content)
            raw = raw.get("overrides", raw)
        else:
            raw = json.loads(content)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must map package names to licenses")
    return {key: _parse_entry(path, key, value) for key, value in raw.items()}


def _parse_entry(path: Path, key: str, value: Any) -> LicenseOverride:
    if isinstance(value, str):
        return LicenseOverride(license=value)
    if isinstance(value, dict) and isinstance(value.get("license"), str):
        return LicenseOverride(
            license=value["license"],
            repository=value.get("repository"),
            source=value.get("source"),
            source_text=value.get("sourceText", value.get("source_text")),
        )
    raise ConfigError(f"override '{key}' in {path} needs a license string")


def find_override(
    table: Mapping[str, LicenseOverride], name: str, version: str
) -> LicenseOverride | None:
    """Versioned key first, then the bare package name."""
    return table.get(f"{name}@{version}") or table.get(name)


def apply_overrides(
    packages: Iterable[ScannedPackage],
    table: Mapping[str, LicenseOverride],
    *,
    warn_stale: bool = True,
) -> Summary:
    """Resolve each package's final record, overrides taking precedence."""
    summary: Summary = {}
    used: set[str] = set()
    for pkg in packages:
        record = pkg.to_record()
        override = find_override(table, pkg.name, pkg.version)
        if override is not None:
            record = override.apply(record)
            used.add(pkg.key if pkg.key in table else pkg.name)
        summary[pkg.key] = record

    stale = sorted(set(table) - used)
    if stale and warn_stale:
        log.warning("licenses.stale_overrides", overrides=stale)
    return summary
