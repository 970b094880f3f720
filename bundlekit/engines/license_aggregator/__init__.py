"""License aggregator engine: consolidated license report with an approval gate."""

from bundlekit.engines.license_aggregator.aggregator import LicenseAggregator, inject_host_entry
from bundlekit.engines.license_aggregator.models import LicenseRecord, ScannedPackage, Summary
from bundlekit.engines.license_aggregator.overrides import LicenseOverride, load_overrides
from bundlekit.engines.license_aggregator.report import summary_to_json, write_summary
from bundlekit.engines.license_aggregator.scanner import scan_dependencies

__all__ = [
    "LicenseAggregator",
    "LicenseOverride",
    "LicenseRecord",
    "ScannedPackage",
    "Summary",
    "inject_host_entry",
    "load_overrides",
    "scan_dependencies",
    "summary_to_json",
    "write_summary",
]
