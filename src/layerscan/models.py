"""Data model shared by listers, updaters and the matcher."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

# Layer-relative path (forward slashes, no leading slash) to raw content.
FilesMap = Dict[str, bytes]


class Severity(Enum):
    """Vulnerability severity levels."""

    UNKNOWN = "Unknown"
    NEGLIGIBLE = "Negligible"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"
    DEFCON1 = "Defcon1"


@dataclass(frozen=True)
class Namespace:
    """A distribution/version scope, e.g. ``alpine:3.9``."""

    name: str
    version_format: str

    def __str__(self) -> str:
        return self.name

    @property
    def distro(self) -> str:
        return self.name.split(":", 1)[0]

    @property
    def release(self) -> str:
        parts = self.name.split(":", 1)
        return parts[1] if len(parts) == 2 else ""

    @classmethod
    def parse(cls, name: str, version_format: str) -> "Namespace":
        """Build a namespace from its ``<distro>:<version>`` string form.

        Raises:
            ValueError: If the string is not of the form ``distro:version``
        """
        distro, sep, release = name.partition(":")
        if not sep or not distro or not release:
            raise ValueError(f"invalid namespace '{name}'")
        return cls(name=name, version_format=version_format)


@dataclass(frozen=True)
class Feature:
    """A package identity."""

    name: str
    namespace: Optional[Namespace] = None


@dataclass(frozen=True)
class FeatureVersion:
    """A concrete installed (or fixed) package version."""

    feature: Feature
    version: str
    version_format: str

    @property
    def name(self) -> str:
        return self.feature.name

    @property
    def key(self) -> str:
        """Deduplication key within one listing run."""
        return f"{self.feature.name}#{self.version}"

    def with_namespace(self, namespace: Namespace) -> "FeatureVersion":
        return FeatureVersion(
            feature=Feature(name=self.feature.name, namespace=namespace),
            version=self.version,
            version_format=self.version_format,
        )


@dataclass
class Vulnerability:
    """A vulnerability record and the versions that fix it."""

    name: str
    namespace: Namespace
    fixed_in: List[FeatureVersion] = field(default_factory=list)
    severity: Severity = Severity.UNKNOWN
    link: str = ""
    description: str = ""

    def is_valid(self) -> bool:
        """Check whether the record is usable for matching."""
        return bool(self.name) and len(self.fixed_in) > 0
