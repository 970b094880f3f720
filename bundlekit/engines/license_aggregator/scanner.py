"""Walk an npm-style node_modules tree and identify each package's license."""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any

import structlog

from bundlekit.engines.license_aggregator.classifier import (
    UNKNOWN,
    detect_license_text,
    detect_readme_license,
    license_from_package,
    normalize_repository,
)
from bundlekit.engines.license_aggregator.models import ScannedPackage
from bundlekit.exceptions import LicenseError

log = structlog.get_logger("bundlekit.engine.licenses")

_LICENSE_FILE_RE = re.compile(r"^(licen[cs]e|copying)([.\-_].*)?$", re.I)
_README_FILE_RE = re.compile(r"^readme(\..*)?$", re.I)


def scan_dependencies(project_path: Path, include_dev: bool = False) -> list[ScannedPackage]:
    """Scan every transitive dependency reachable from *project_path*.

    Metadata reads for each level of the dependency graph run concurrently and
    are joined before the next level is resolved. Returns packages sorted by
    ``name@version``, one entry per distinct key.

    Raises ``LicenseError(SCAN_FAILURE)`` when any metadata cannot be read or
    a required dependency is not installed.
    """
    return asyncio.run(_scan(Path(project_path).resolve(), include_dev))


async def _scan(project_path: Path, include_dev: bool) -> list[ScannedPackage]:
    root_package = _read_package_json(project_path)
    frontier = _requirements(root_package, project_path, include_dev=include_dev)

    seen: set[Path] = set()
    packages: dict[str, ScannedPackage] = {}

    while frontier:
        level: list[Path] = []
        for name, from_dir, optional in frontier:
            pkg_dir = _resolve(name, from_dir, project_path)
            if pkg_dir is None:
                if optional:
                    log.debug("licenses.optional_missing", package=name, required_by=str(from_dir))
                    continue
                raise LicenseError.scan_failure(
                    f"dependency '{name}' required by {from_dir} is not installed"
                )
            real = pkg_dir.resolve()
            if real in seen:
                continue
            seen.add(real)
            level.append(real)

        results = await asyncio.gather(
            *(asyncio.to_thread(_inspect, pkg_dir) for pkg_dir in level),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        frontier = []
        for pkg_dir, (scanned, package) in zip(level, results):
            kept = packages.setdefault(scanned.key, scanned)
            if kept is not scanned:
                log.debug(
                    "licenses.duplicate_install",
                    package=scanned.key,
                    kept=str(kept.path),
                    ignored=str(scanned.path),
                )
            frontier.extend(_requirements(package, pkg_dir, include_dev=False))

    log.debug("licenses.scanned", project=str(project_path), packages=len(packages))
    return [packages[key] for key in sorted(packages)]


def _requirements(
    package: dict[str, Any], from_dir: Path, *, include_dev: bool
) -> list[tuple[str, Path, bool]]:
    """List ``(name, from_dir, optional)`` for each dependency *package* declares."""
    sections = ["dependencies", "optionalDependencies"]
    if include_dev:
        sections.append("devDependencies")

    optional_names = set()
    declared: dict[str, None] = {}
    for section in sections:
        table = package.get(section) or {}
        if not isinstance(table, dict):
            raise LicenseError.scan_failure(
                f"'{section}' in {from_dir / 'package.json'} must be an object"
            )
        if section == "optionalDependencies":
            optional_names.update(table)
        declared.update(dict.fromkeys(table))

    return [(name, from_dir, name in optional_names) for name in declared]


def _resolve(name: str, from_dir: Path, project_root: Path) -> Path | None:
    """Node module resolution: nearest ``node_modules/<name>`` walking up to the root."""
    current = from_dir
    while True:
        if current.name != "node_modules":
            candidate = current / "node_modules" / name
            if (candidate / "package.json").is_file():
                return candidate
        if current == project_root or current.parent == current:
            return None
        current = current.parent


def _read_package_json(pkg_dir: Path) -> dict[str, Any]:
    path = pkg_dir / "package.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise LicenseError.scan_failure(f"cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise LicenseError.scan_failure(f"invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise LicenseError.scan_failure(f"{path} must contain a JSON object")
    return data


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise LicenseError.scan_failure(f"cannot read {path}: {e}") from e


def _inspect(pkg_dir: Path) -> tuple[ScannedPackage, dict[str, Any]]:
    """Read one package's metadata and work out its license."""
    package = _read_package_json(pkg_dir)
    files = sorted(p for p in pkg_dir.iterdir() if p.is_file())
    license_files = [p for p in files if _LICENSE_FILE_RE.match(p.name)]

    license_id = license_from_package(package)
    source = "package.json"
    source_text: str | None = None

    if license_files:
        source_text = _read_text(license_files[0])
        if license_id is None:
            license_id = detect_license_text(source_text)
            source = license_files[0].name

    if license_id is None:
        for readme in (p for p in files if _README_FILE_RE.match(p.name)):
            license_id = detect_readme_license(_read_text(readme))
            if license_id:
                source = readme.name
                break

    scanned = ScannedPackage(
        name=str(package.get("name") or pkg_dir.name),
        version=str(package.get("version") or "0.0.0"),
        path=pkg_dir,
        repository=normalize_repository(package.get("repository")),
        license=license_id or UNKNOWN,
        source=source,
        source_text=source_text,
    )
    return scanned, package
