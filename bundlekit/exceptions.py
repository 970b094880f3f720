"""Custom exceptions for bundlekit."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from bundlekit.engines.license_aggregator.models import LicenseRecord


class BuildError(Exception):
    """Base exception for all build errors."""


class ConfigError(BuildError):
    """Raised when bundlekit.toml or the environment holds an invalid setting."""


class ManifestError(BuildError):
    """Raised when a package manifest or externals list cannot be read."""


class PackagingError(BuildError):
    """Raised when an external tool (installer, packager) exits non-zero."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"{' '.join(command)} failed (exit {returncode}){detail}")


class LicenseErrorKind(str, enum.Enum):
    UNAPPROVED_LICENSES = "unapproved_licenses"
    SCAN_FAILURE = "scan_failure"


class LicenseError(BuildError):
    """Raised by the license aggregator.

    ``UNAPPROVED_LICENSES`` carries the flagged entries so the message can list
    exactly which packages need an override. ``SCAN_FAILURE`` means package
    metadata could not be read and no partial summary may be trusted.
    """

    def __init__(
        self,
        kind: LicenseErrorKind,
        message: str,
        entries: Mapping[str, LicenseRecord] | None = None,
    ):
        self.kind = kind
        self.entries = dict(entries or {})
        super().__init__(message)

    @classmethod
    def unapproved(
        cls, entries: Mapping[str, LicenseRecord], overrides_path: str | None = None
    ) -> LicenseError:
        lines = [
            f"{key} ({record.repository}): {record.license}"
            for key, record in sorted(entries.items())
        ]
        where = overrides_path or "the license overrides file"
        message = (
            "The following dependencies have unknown or non-permissive licenses. "
            f"Check it out and update {where} if appropriate:\n" + "\n".join(lines)
        )
        return cls(LicenseErrorKind.UNAPPROVED_LICENSES, message, entries)

    @classmethod
    def scan_failure(cls, message: str) -> LicenseError:
        return cls(LicenseErrorKind.SCAN_FAILURE, message)
