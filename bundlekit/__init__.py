"""bundlekit: dependency pruning and license gating for desktop app bundles."""

__version__ = "0.1.0"

from bundlekit.core.config import BuildConfig, BuildMode, HostProject
from bundlekit.engines.license_aggregator import LicenseAggregator, LicenseRecord
from bundlekit.engines.pruner import PrunedManifests, prune
from bundlekit.exceptions import BuildError, LicenseError, LicenseErrorKind
from bundlekit.orchestrator import BuildOrchestrator, BuildOutput

__all__ = [
    "BuildConfig",
    "BuildError",
    "BuildMode",
    "BuildOrchestrator",
    "BuildOutput",
    "HostProject",
    "LicenseAggregator",
    "LicenseError",
    "LicenseErrorKind",
    "LicenseRecord",
    "PrunedManifests",
    "prune",
]
