"""Build configuration: immutable settings from bundlekit.toml + environment."""

from __future__ import annotations

import enum
import json
import os
import sys
from pathlib import Path
from typing import Any, Mapping

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bundlekit.exceptions import ConfigError

CONFIG_FILE = "bundlekit.toml"

_DEFAULT_PATHS = {
    "app": "app",
    "out": "out",
    "dist": "dist",
    "static": "app/static",
    "externals": "app/externals.json",
    "overrides": None,
    "license": "LICENSE",
    "licenses_output": "static/licenses.json",
}


class BuildMode(str, enum.Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> BuildMode:
        """``BUNDLEKIT_BUILD_MODE`` first, then ``NODE_ENV``; only "production" is production."""
        raw = env.get("BUNDLEKIT_BUILD_MODE") or env.get("NODE_ENV") or ""
        return cls.PRODUCTION if raw.strip().lower() == "production" else cls.DEVELOPMENT


class HostProject(BaseModel):
    """The application being built, as it appears in its own license report."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    repository: str
    license: str = "MIT"

    @property
    def key(self) -> str:
        return f"{self.name}@{self.version}"

    @property
    def source_url(self) -> str:
        return f"{self.repository.rstrip('/')}/blob/release-{self.version}/LICENSE"


class DistInfo(BaseModel):
    """Product naming derived from the app package.json."""

    model_config = ConfigDict(frozen=True)

    product_name: str
    version: str
    bundle_id: str | None = None
    company_name: str | None = None

    @classmethod
    def from_package(cls, package: Mapping[str, Any], mode: BuildMode) -> DistInfo:
        # Dev builds get a distinct name so both can run side by side.
        base = package.get("productName") or package.get("name") or "app"
        bundle_id = package.get("bundleID")
        if mode is BuildMode.DEVELOPMENT:
            base = f"{base}-dev"
            if bundle_id:
                bundle_id = f"{bundle_id}Dev"
        return cls(
            product_name=base,
            version=str(package.get("version") or "0.0.0"),
            bundle_id=bundle_id,
            company_name=package.get("companyName"),
        )


class ResourceCopy(BaseModel):
    """A file or directory copied into the staging directory."""

    model_config = ConfigDict(frozen=True)

    source: Path
    destination: str
    overwrite: bool = True


class PackagerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Placeholders: {out_dir} {dist_dir} {product_name} {platform} {version}
    # {bundle_id} {company_name}
    command: tuple[str, ...] = ()
    install_command: tuple[str, ...] = ("npm", "install")


class BuildConfig(BaseModel):
    """Everything a build needs, resolved to absolute paths."""

    model_config = ConfigDict(frozen=True)

    mode: BuildMode = BuildMode.DEVELOPMENT
    platform: str = Field(default_factory=lambda: sys.platform)
    project_root: Path
    app_dir: Path
    out_dir: Path
    dist_dir: Path
    static_dir: Path
    externals_path: Path
    overrides_path: Path | None = None
    license_path: Path
    licenses_output: Path
    host: HostProject
    dist: DistInfo
    resources: tuple[ResourceCopy, ...] = ()
    dev_resources: tuple[ResourceCopy, ...] = ()
    packager: PackagerSettings = PackagerSettings()
    include_dev_licenses: bool = False

    @property
    def is_production(self) -> bool:
        return self.mode is BuildMode.PRODUCTION

    @property
    def manifest_path(self) -> Path:
        return self.app_dir / "package.json"

    @classmethod
    def load(
        cls,
        project_root: str | Path,
        env: Mapping[str, str] | None = None,
    ) -> BuildConfig:
        """Read ``bundlekit.toml`` (optional) under *project_root* plus the environment.

        Raises :class:`ConfigError` on unreadable or invalid settings.
        """
        from bundlekit.engines.license_aggregator.classifier import normalize_repository

        env = os.environ if env is None else env
        root = Path(project_root).resolve()
        raw = _read_toml(root / CONFIG_FILE)
        mode = BuildMode.from_env(env)

        paths = {**_DEFAULT_PATHS, **_table(raw, "paths")}

        def resolve(key: str) -> Path | None:
            value = paths[key]
            if value is None:
                return None
            if not isinstance(value, str):
                raise ConfigError(f"invalid {CONFIG_FILE}: paths.{key} must be a string")
            return (root / value).resolve()

        app_dir = resolve("app")
        out_dir = resolve("out")
        package = _read_package(app_dir / "package.json")
        try:
            dist = DistInfo.from_package(package, mode)
        except ValidationError as e:
            raise ConfigError(f"invalid naming fields in {app_dir / 'package.json'}: {e}") from e

        licenses_output = paths["licenses_output"]
        if not isinstance(licenses_output, str):
            raise ConfigError(f"invalid {CONFIG_FILE}: paths.licenses_output must be a string")

        host_raw = dict(_table(raw, "host"))
        host_raw.setdefault("name", package.get("name") or dist.product_name)
        host_raw.setdefault("version", dist.version)
        repository = normalize_repository(host_raw.get("repository", package.get("repository")))
        if repository is None:
            raise ConfigError(
                f"no host repository: set [host] repository in {CONFIG_FILE} "
                f"or 'repository' in {app_dir / 'package.json'}"
            )
        host_raw["repository"] = repository

        try:
            return cls(
                mode=mode,
                platform=env.get("BUNDLEKIT_PLATFORM") or sys.platform,
                project_root=root,
                app_dir=app_dir,
                out_dir=out_dir,
                dist_dir=resolve("dist"),
                static_dir=resolve("static"),
                externals_path=resolve("externals"),
                overrides_path=resolve("overrides"),
                license_path=resolve("license"),
                licenses_output=out_dir / licenses_output,
                host=HostProject(**host_raw),
                dist=dist,
                resources=_resources(root, raw, "resources"),
                dev_resources=_resources(root, raw, "dev_resources"),
                packager=PackagerSettings(**_table(raw, "packager")),
                include_dev_licenses=_table(raw, "licenses").get("include_dev", False),
            )
        except (ValidationError, TypeError, KeyError) as e:
            raise ConfigError(f"invalid {CONFIG_FILE}: {e}") from e


def _table(raw: Mapping[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"invalid {CONFIG_FILE}: [{name}] must be a table")
    return value


def _resources(root: Path, raw: Mapping[str, Any], name: str) -> tuple[ResourceCopy, ...]:
    entries = raw.get(name, [])
    if not isinstance(entries, list):
        raise ConfigError(f"invalid {CONFIG_FILE}: {name} must be an array of tables")
    return tuple(_resource(root, entry) for entry in entries)


def _resource(root: Path, entry: Any) -> ResourceCopy:
    if not isinstance(entry, dict):
        raise ConfigError(f"invalid {CONFIG_FILE}: resource entry must be a table: {entry!r}")
    if "source" not in entry or "destination" not in entry:
        raise ConfigError(f"resource entry needs 'source' and 'destination': {entry}")
    if not isinstance(entry["source"], str):
        raise ConfigError(f"invalid {CONFIG_FILE}: resource source must be a string")
    return ResourceCopy(
        source=(root / entry["source"]).resolve(),
        destination=entry["destination"],
        overwrite=entry.get("overwrite", True),
    )


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e


def _read_package(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"app manifest not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return data
