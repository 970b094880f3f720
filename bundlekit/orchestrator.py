"""Build orchestrator: linear build pipeline.

Phase 1: clean         remove the previous distribution
Phase 2: dependencies  prune package.json to externals, install, dev extras
Phase 3: resources     static resources + configured resource copies
Phase 4: licenses      license gate and report
Phase 5: package       external packager (skipped when not configured)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Sequence

import structlog

from bundlekit.assets import copy_resource, copy_static_resources, remove_path
from bundlekit.core.config import BuildConfig
from bundlekit.engines.license_aggregator import LicenseAggregator, write_summary
from bundlekit.engines.pruner import (
    PrunedManifests,
    build_descriptor,
    load_externals,
    load_manifest,
    needs_install,
    prune,
)
from bundlekit.exceptions import LicenseError, LicenseErrorKind
from bundlekit.progress import ProgressTracker
from bundlekit.tools import format_command, run_command

log = structlog.get_logger("bundlekit.build")

CommandRunner = Callable[[Sequence[str], Path], str]


@dataclass
class BuildOutput:
    """Orchestrator return value."""

    product_name: str
    mode: str
    descriptor_path: Path
    installed: bool
    licenses_path: Path | None
    license_error: str | None = None
    app_paths: list[Path] = field(default_factory=list)
    phases: dict[str, Any] = field(default_factory=dict)


class BuildOrchestrator:
    """Assemble the staging directory and hand it to the packager."""

    def __init__(
        self,
        config: BuildConfig,
        aggregator: LicenseAggregator | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.config = config
        self.aggregator = aggregator or LicenseAggregator.from_config(config)
        self._run = runner
        self.progress = ProgressTracker()

    def build(self) -> BuildOutput:
        """Run every phase in order. Any fatal error propagates to the caller."""
        cfg = self.config
        self.progress = ProgressTracker()
        log.info("build.start", mode=cfg.mode.value, product=cfg.dist.product_name)

        with self.progress.track("clean") as phase:
            remove_path(cfg.dist_dir)
            cfg.out_dir.mkdir(parents=True, exist_ok=True)
            phase.detail = str(cfg.dist_dir)

        with self.progress.track("dependencies") as phase:
            pruned = self.copy_dependencies()
            installed = needs_install(pruned)
            phase.detail = (
                f"{len(pruned.runtime)} runtime, "
                f"{'-' if pruned.dev is None else len(pruned.dev)} dev"
            )

        with self.progress.track("resources") as phase:
            phase.detail = f"{self.copy_resources()} files"

        with self.progress.track("licenses") as phase:
            licenses_path, license_error = self.update_license_dump()
            phase.detail = "advisory failure" if license_error else str(licenses_path)

        app_paths = self.package_app()

        return BuildOutput(
            product_name=cfg.dist.product_name,
            mode=cfg.mode.value,
            descriptor_path=cfg.out_dir / "package.json",
            installed=installed,
            licenses_path=licenses_path,
            license_error=license_error,
            app_paths=app_paths,
            phases=self.progress.get_summary(),
        )

    # ── phases ───────────────────────────────────────────────────────────

    def prune_manifest(self) -> tuple[PrunedManifests, dict[str, Any]]:
        """Pruned manifests and the output package descriptor (nothing written)."""
        cfg = self.config
        package = load_manifest(cfg.manifest_path)
        externals = load_externals(cfg.externals_path)
        pruned = prune(
            package.get("dependencies"),
            externals,
            package.get("devDependencies"),
            cfg.mode,
        )
        return pruned, build_descriptor(package, pruned, cfg.dist.product_name)

    def copy_dependencies(self) -> PrunedManifests:
        cfg = self.config
        pruned, descriptor = self.prune_manifest()
        (cfg.out_dir / "package.json").write_text(json.dumps(descriptor), encoding="utf-8")
        remove_path(cfg.out_dir / "node_modules")

        if needs_install(pruned):
            log.info("build.installing_dependencies", command=" ".join(cfg.packager.install_command))
            self._run(list(cfg.packager.install_command), cfg.out_dir)
        else:
            log.info("build.install_skipped", reason="no external dependencies")

        if not cfg.is_production:
            for resource in cfg.dev_resources:
                copy_resource(resource, cfg.out_dir)
        return pruned

    def copy_resources(self) -> int:
        cfg = self.config
        written = copy_static_resources(cfg.static_dir, cfg.platform, cfg.out_dir)
        for resource in cfg.resources:
            written += copy_resource(resource, cfg.out_dir)
        return written

    def update_license_dump(self) -> tuple[Path | None, str | None]:
        """Write the license report; returns ``(path, advisory_error)``.

        Unapproved licenses are fatal for production builds and advisory
        otherwise. Scan failures and an unreadable LICENSE are always fatal.
        """
        cfg = self.config
        try:
            summary = self.aggregator.aggregate(cfg.app_dir)
        except LicenseError as e:
            if e.kind is not LicenseErrorKind.UNAPPROVED_LICENSES or cfg.is_production:
                log.error("licenses.fatal", kind=e.kind.value, production=cfg.is_production)
                raise
            log.warning("licenses.advisory", unapproved=len(e.entries), error=str(e))
            return None, str(e)

        write_summary(summary, cfg.licenses_output)
        return cfg.licenses_output, None

    def package_app(self) -> list[Path]:
        cfg = self.config
        if not cfg.packager.command:
            self.progress.skip("package", "no packager command configured")
            return []

        with self.progress.track("package") as phase:
            command = format_command(
                cfg.packager.command,
                out_dir=str(cfg.out_dir),
                dist_dir=str(cfg.dist_dir),
                product_name=cfg.dist.product_name,
                platform=cfg.platform,
                version=cfg.dist.version,
                bundle_id=cfg.dist.bundle_id or "",
                company_name=cfg.dist.company_name or "",
            )
            self._run(command, cfg.project_root)
            app_paths = sorted(cfg.dist_dir.iterdir()) if cfg.dist_dir.is_dir() else []
            phase.detail = f"{len(app_paths)} artifact(s)"
        log.info("build.packaged", app_paths=[str(p) for p in app_paths])
        return app_paths
