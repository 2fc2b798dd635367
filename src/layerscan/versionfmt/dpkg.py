"""Debian version format.

Versions have the form ``[epoch:]upstream_version[-debian_revision]`` and
are ordered with the algorithm of dpkg's ``verrevcmp`` as described in the
Debian Policy Manual, section 5.6.12.
"""

import re
from dataclasses import dataclass

from .base import VersionParser, cmp

PARSER_NAME = "dpkg"

_EPOCH_RE = re.compile(r"^[0-9]+$")
_UPSTREAM_RE = re.compile(r"^[0-9][A-Za-z0-9.+~:_-]*$")
_REVISION_RE = re.compile(r"^[A-Za-z0-9.+~_]+$")


@dataclass(frozen=True)
class DebianVersion:
    """Parsed Debian version."""

    epoch: int
    upstream: str
    revision: str

    def __str__(self) -> str:
        s = self.upstream
        if self.epoch:
            s = f"{self.epoch}:{s}"
        if self.revision:
            s = f"{s}-{self.revision}"
        return s


def _order(c: str) -> int:
    # Letters sort before non-letters and "~" sorts before everything,
    # even the end of the string.
    if c.isdigit():
        return 0
    if c.isalpha():
        return ord(c)
    if c == "~":
        return -1
    return ord(c) + 256


def verrevcmp(a: str, b: str) -> int:
    """Compare two upstream versions or revisions the way dpkg does."""
    i = j = 0
    len_a, len_b = len(a), len(b)

    while i < len_a or j < len_b:
        first_diff = 0

        while (i < len_a and not a[i].isdigit()) or (j < len_b and not b[j].isdigit()):
            ac = _order(a[i]) if i < len_a else 0
            bc = _order(b[j]) if j < len_b else 0
            if ac != bc:
                return ac - bc
            i += 1
            j += 1

        while i < len_a and a[i] == "0":
            i += 1
        while j < len_b and b[j] == "0":
            j += 1

        while i < len_a and a[i].isdigit() and j < len_b and b[j].isdigit():
            if not first_diff:
                first_diff = ord(a[i]) - ord(b[j])
            i += 1
            j += 1

        if i < len_a and a[i].isdigit():
            return 1
        if j < len_b and b[j].isdigit():
            return -1
        if first_diff:
            return first_diff

    return 0


class DpkgVersionParser(VersionParser):
    """Parser for Debian package versions."""

    @property
    def format_name(self) -> str:
        return PARSER_NAME

    def parse(self, version: str) -> DebianVersion:
        s = version.strip()
        if not s:
            raise self._invalid(version, "no version at all")
        if any(c.isspace() for c in s):
            raise self._invalid(version, "version contains embedded spaces")

        epoch = 0
        if ":" in s:
            epoch_str, s = s.split(":", 1)
            if not _EPOCH_RE.match(epoch_str):
                raise self._invalid(version, "epoch in version is not a number")
            epoch = int(epoch_str)

        upstream, sep, revision = s.rpartition("-")
        if not sep:
            upstream, revision = s, ""
        elif not revision:
            raise self._invalid(version, "revision number is empty")

        if not upstream:
            raise self._invalid(version, "version number is empty")
        if not _UPSTREAM_RE.match(upstream):
            if not upstream[0].isdigit():
                raise self._invalid(version, "version number does not start with digit")
            raise self._invalid(version, "invalid character in version number")
        if revision and not _REVISION_RE.match(revision):
            raise self._invalid(version, "invalid character in revision number")

        return DebianVersion(epoch=epoch, upstream=upstream, revision=revision)

    def compare_parsed(self, a: DebianVersion, b: DebianVersion) -> int:
        if a.epoch != b.epoch:
            return cmp(a.epoch, b.epoch)
        result = verrevcmp(a.upstream, b.upstream)
        if result:
            return result
        return verrevcmp(a.revision, b.revision)
