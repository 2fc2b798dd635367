"""Node package version format (Semantic Versioning 2.0.0).

Build metadata is ignored for ordering; pre-release versions sort below
the associated normal version.
"""

import re
from dataclasses import dataclass
from typing import Tuple, Union

from .base import VersionParser, cmp

PARSER_NAME = "npm"

_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_SEMVER_RE = re.compile(
    r"^v?(?P<major>0|[1-9][0-9]*)\.(?P<minor>0|[1-9][0-9]*)\.(?P<patch>0|[1-9][0-9]*)"
    rf"(?:-(?P<prerelease>{_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

Identifier = Union[int, str]


@dataclass(frozen=True)
class SemVer:
    """Parsed semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: Tuple[Identifier, ...] = ()
    build: str = ""


def _compare_identifier(a: Identifier, b: Identifier) -> int:
    # Numeric identifiers always have lower precedence than alphanumeric ones.
    if isinstance(a, int) and isinstance(b, int):
        return cmp(a, b)
    if isinstance(a, int):
        return -1
    if isinstance(b, int):
        return 1
    return cmp(a, b)


def _compare_prerelease(a: Tuple[Identifier, ...], b: Tuple[Identifier, ...]) -> int:
    if not a and not b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    for x, y in zip(a, b):
        result = _compare_identifier(x, y)
        if result:
            return result
    return cmp(len(a), len(b))


class NpmVersionParser(VersionParser):
    """Parser for semantic versions as used in package.json."""

    @property
    def format_name(self) -> str:
        return PARSER_NAME

    def parse(self, version: str) -> SemVer:
        match = _SEMVER_RE.match(version.strip())
        if not match:
            raise self._invalid(version, "not a semantic version")

        prerelease: Tuple[Identifier, ...] = ()
        if match.group("prerelease"):
            prerelease = tuple(
                int(part) if part.isdigit() else part
                for part in match.group("prerelease").split(".")
            )

        return SemVer(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=prerelease,
            build=match.group("build") or "",
        )

    def compare_parsed(self, a: SemVer, b: SemVer) -> int:
        result = cmp((a.major, a.minor, a.patch), (b.major, b.minor, b.patch))
        if result:
            return result
        return _compare_prerelease(a.prerelease, b.prerelease)
