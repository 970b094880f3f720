"""Copy static resources into the staging directory."""

from __future__ import annotations

import shutil
from pathlib import Path

import structlog

from bundlekit.core.config import ResourceCopy

log = structlog.get_logger("bundlekit.assets")


def remove_path(path: Path) -> None:
    """Delete a file or directory tree if it exists."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def copy_path(source: Path, destination: Path, overwrite: bool = True) -> int:
    """Copy *source* (file or tree) to *destination*; return files written.

    With ``overwrite=False`` files already present at the destination are kept.
    Symlinks are copied as links.
    """
    if not source.exists():
        raise FileNotFoundError(f"resource not found: {source}")

    if source.is_file():
        if destination.exists() and not overwrite:
            return 0
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination, follow_symlinks=False)
        return 1

    written = 0
    for item in sorted(source.rglob("*")):
        target = destination / item.relative_to(source)
        if item.is_dir() and not item.is_symlink():
            target.mkdir(parents=True, exist_ok=True)
            continue
        if (target.exists() or target.is_symlink()) and not overwrite:
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink():
            target.unlink()
        shutil.copy2(item, target, follow_symlinks=False)
        written += 1
    destination.mkdir(parents=True, exist_ok=True)
    return written


def copy_resource(resource: ResourceCopy, out_dir: Path) -> int:
    """Replace ``out_dir/<destination>`` with a fresh copy of the resource."""
    destination = out_dir / resource.destination
    if resource.overwrite:
        remove_path(destination)
    written = copy_path(resource.source, destination, overwrite=resource.overwrite)
    log.debug("assets.copied", source=str(resource.source), destination=str(destination), files=written)
    return written


def copy_static_resources(static_dir: Path, platform: str, out_dir: Path) -> int:
    """Platform-specific resources first, then ``common`` without clobbering them."""
    destination = out_dir / "static"
    remove_path(destination)
    written = 0
    platform_dir = static_dir / platform
    if platform_dir.is_dir():
        written += copy_path(platform_dir, destination)
    else:
        log.warning("assets.no_platform_resources", platform=platform, path=str(platform_dir))
    common_dir = static_dir / "common"
    if common_dir.is_dir():
        written += copy_path(common_dir, destination, overwrite=False)
    return written
