"""layerscan: package inventory of container image layers.

Layers are decoded by image format extractors, package databases are read
by per-ecosystem listers and versions are ordered by per-format parsers so
installed packages can be matched against vulnerability fix data.
"""

from .analyzer import LayerAnalyzer, Registries, build_registries
from .matcher import VulnerabilityMatch, match_vulnerabilities
from .models import (
    Feature,
    FeatureVersion,
    FilesMap,
    Namespace,
    Severity,
    Vulnerability,
)
from .registry import PluginRegistry

__version__ = "0.1.0"

__all__ = [
    "Feature",
    "FeatureVersion",
    "FilesMap",
    "LayerAnalyzer",
    "Namespace",
    "PluginRegistry",
    "Registries",
    "Severity",
    "Vulnerability",
    "VulnerabilityMatch",
    "build_registries",
    "match_vulnerabilities",
]
