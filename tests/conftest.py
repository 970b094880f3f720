"""Shared pytest fixtures: throwaway app projects with an installed node_modules tree."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

MIT_TEXT = """MIT License

Copyright (c) 2017 Example

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction.
"""


@pytest.fixture
def mit_text() -> str:
    return MIT_TEXT


def _write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    return _write_json


@pytest.fixture
def add_package() -> Callable[..., Path]:
    """Install a fake package under ``<base>/node_modules/<name>``."""

    def _add(
        base: Path,
        name: str,
        version: str = "1.0.0",
        license: str | None = "MIT",
        deps: dict[str, str] | None = None,
        **extra: Any,
    ) -> Path:
        pkg_dir = base / "node_modules" / name
        data: dict[str, Any] = {"name": name, "version": version}
        if license is not None:
            data["license"] = license
        if deps:
            data["dependencies"] = deps
        data.update(extra)
        _write_json(pkg_dir / "package.json", data)
        return pkg_dir

    return _add


@pytest.fixture
def app_dir(tmp_path, add_package) -> Path:
    """An app with runtime deps a -> (none), b -> c, all permissively licensed."""
    app = tmp_path / "app"
    _write_json(
        app / "package.json",
        {
            "name": "desktop",
            "productName": "GitHub Desktop",
            "bundleID": "com.github.GitHubClient",
            "companyName": "GitHub, Inc.",
            "version": "1.2.3",
            "main": "main.js",
            "repository": {"type": "git", "url": "git+https://github.com/desktop/desktop.git"},
            "dependencies": {"a": "^1.0.0", "b": "^2.0.0"},
            "devDependencies": {"devtool": "^3.0.0", "linter": "^4.0.0"},
        },
    )
    add_package(app, "a", "1.0.0", "MIT", repository="git+https://github.com/org/a.git")
    add_package(app, "b", "2.0.0", "ISC", deps={"c": "^1.0.0"}, repository="org/b")
    add_package(app, "c", "1.1.0", "Apache-2.0")
    add_package(app, "devtool", "3.0.0", "MIT")
    return app


@pytest.fixture
def project(tmp_path, app_dir) -> Path:
    """A full project root around ``app_dir`` with bundlekit.toml and resources."""
    root = tmp_path
    (root / "LICENSE").write_text(MIT_TEXT, encoding="utf-8")
    _write_json(app_dir / "externals.json", ["a", "devtool"])

    static = app_dir / "static"
    for platform in ("linux", "darwin", "common"):
        (static / platform).mkdir(parents=True)
    (static / "linux" / "icon.png").write_text("linux icon")
    (static / "darwin" / "icon.icns").write_text("mac icon")
    (static / "common" / "icon.png").write_text("common icon")
    (static / "common" / "shared.txt").write_text("shared")

    emoji = root / "gemoji"
    (emoji / "images" / "emoji").mkdir(parents=True)
    (emoji / "images" / "emoji" / "smile.png").write_text("smile")
    _write_json(emoji / "db" / "emoji.json", [{"emoji": "smile"}])

    seven_zip = app_dir / "node_modules" / "7zip"
    seven_zip.mkdir(parents=True)
    (seven_zip / "7za").write_text("binary")

    (root / "bundlekit.toml").write_text(
        """
[host]
name = "desktop"
repository = "https://github.com/desktop/desktop"
license = "MIT"

[paths]
overrides = "script/license-overrides.json"

[[resources]]
source = "gemoji/images/emoji"
destination = "emoji"

[[resources]]
source = "gemoji/db/emoji.json"
destination = "emoji.json"

[[dev_resources]]
source = "app/node_modules/7zip"
destination = "node_modules/7zip"
""",
        encoding="utf-8",
    )
    _write_json(root / "script" / "license-overrides.json", {})
    return root
