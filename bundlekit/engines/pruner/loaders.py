"""Read the app manifest and the externals allow-list from disk."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from bundlekit.exceptions import ManifestError


def load_manifest(path: Path) -> dict[str, Any]:
    """Load a package.json as an ordered dict."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ManifestError(f"manifest not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a JSON object")
    for key in ("dependencies", "devDependencies"):
        if key in data and not isinstance(data[key], dict):
            raise ManifestError(f"'{key}' in {path} must be an object")
    return data


def load_externals(path: Path) -> frozenset[str]:
    """Load the externals list.

    Accepted shapes:
        JSON: ``["a", "b"]`` or ``{"externals": ["a", "b"]}``
        TOML: ``externals = [...]`` at top level or under ``[bundle]``
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ManifestError(f"externals file not found: {path}") from e

    if path.suffix == ".toml":
        try:
            data: Any = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"invalid TOML in {path}: {e}") from e
        bundle = data.get("bundle", {})
        if not isinstance(bundle, dict):
            raise ManifestError(f"[bundle] in {path} must be a table")
        names = data.get("externals", bundle.get("externals"))
    else:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ManifestError(f"invalid JSON in {path}: {e}") from e
        names = data.get("externals") if isinstance(data, dict) else data

    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ManifestError(f"{path} must define externals as a list of package names")
    return frozenset(names)
