"""Data models for the license aggregator engine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class LicenseRecord:
    """One entry of the license summary."""

    repository: str | None
    license: str
    source: str
    source_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "repository": self.repository,
            "license": self.license,
            "source": self.source,
        }
        if self.source_text is not None:
            data["sourceText"] = self.source_text
        return data


@dataclass
class ScannedPackage:
    """A single installed package found while walking node_modules."""

    name: str
    version: str
    path: Path
    repository: str | None
    license: str
    source: str
    source_text: str | None = None

    @property
    def key(self) -> str:
        return f"{self.name}@{self.version}"

    def to_record(self) -> LicenseRecord:
        return LicenseRecord(
            repository=self.repository,
            license=self.license,
            source=self.source,
            source_text=self.source_text,
        )


# "name@version" -> record
Summary = dict[str, LicenseRecord]
