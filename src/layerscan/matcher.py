"""Version-aware matching of installed features against vulnerabilities."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .common.errors import InvalidVersionError
from .common.logger import get_logger
from .models import FeatureVersion, Vulnerability
from .registry import PluginRegistry
from .versionfmt.base import MAX_VERSION, VersionParser

logger = get_logger("matcher")


@dataclass(frozen=True)
class VulnerabilityMatch:
    """An installed feature affected by a vulnerability."""

    feature: FeatureVersion
    vulnerability: Vulnerability
    fixed_by: str  # empty when no fixed version is known

    @property
    def fixable(self) -> bool:
        return bool(self.fixed_by)


def is_affected(
    installed: FeatureVersion, fixed_in: FeatureVersion, parser: VersionParser
) -> bool:
    """Check whether an installed version predates the fixed version.

    Args:
        installed: Installed feature version
        fixed_in: Version that fixes the vulnerability
        parser: Parser for the shared version format

    Raises:
        InvalidVersionError: If either version is invalid for the parser
    """
    return parser.compare(installed.version, fixed_in.version) < 0


def _same_scope(installed: FeatureVersion, fixed_in: FeatureVersion) -> bool:
    if installed.version_format != fixed_in.version_format:
        return False
    a, b = installed.feature.namespace, fixed_in.feature.namespace
    return a is None or b is None or a.name == b.name


def match_vulnerabilities(
    features: Iterable[FeatureVersion],
    vulnerabilities: Iterable[Vulnerability],
    parsers: PluginRegistry[VersionParser],
) -> List[VulnerabilityMatch]:
    """Find the vulnerabilities affecting installed features.

    A feature is affected by a fixed-in entry with the same package name
    and version format (and namespace, when both carry one) if its version
    is lower than the fixed version. A fixed version of MAX_VERSION means
    no fix exists yet.

    Args:
        features: Installed feature versions
        vulnerabilities: Vulnerabilities to check
        parsers: Version parsers by format name

    Returns:
        One match per affected feature and vulnerability
    """
    index: Dict[Tuple[str, str], List[Tuple[Vulnerability, FeatureVersion]]]
    index = defaultdict(list)
    for vulnerability in vulnerabilities:
        for fixed_in in vulnerability.fixed_in:
            index[(fixed_in.name, fixed_in.version_format)].append(
                (vulnerability, fixed_in)
            )

    matches = []
    seen = set()
    for feature in features:
        candidates = index.get((feature.name, feature.version_format), [])
        if not candidates:
            continue
        parser = parsers.lookup(feature.version_format)
        if parser is None:
            logger.warning(f"No version parser for format '{feature.version_format}'")
            continue

        for vulnerability, fixed_in in candidates:
            if not _same_scope(feature, fixed_in):
                continue
            key = (feature, vulnerability.name)
            if key in seen:
                continue
            try:
                affected = is_affected(feature, fixed_in, parser)
            except InvalidVersionError as e:
                logger.warning(f"Cannot compare {feature.name}: {e}")
                continue
            if affected:
                seen.add(key)
                fixed_by = "" if fixed_in.version == MAX_VERSION else fixed_in.version
                matches.append(VulnerabilityMatch(feature, vulnerability, fixed_by))

    return matches
