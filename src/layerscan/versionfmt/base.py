"""Base class for version format parsers.

A parser validates version strings of one packaging ecosystem and puts
them in a total order. Two sentinel strings, MIN_VERSION and MAX_VERSION,
are valid for every parser and sort below and above every other version.
They express open-ended vulnerability ranges.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..common.errors import InvalidVersionError

MIN_VERSION = "#MINV#"
MAX_VERSION = "#MAXV#"

_SENTINEL_RANK = {MIN_VERSION: -1, MAX_VERSION: 1}


def cmp(a: Any, b: Any) -> int:
    """Three-way comparison returning -1, 0 or 1."""
    return (a > b) - (a < b)


class VersionParser(ABC):
    """Abstract base class for version format parsers."""

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Return the version format tag (e.g. 'dpkg', 'pip')."""
        pass

    @abstractmethod
    def parse(self, version: str) -> Any:
        """Parse a version string into a comparable representation.

        Args:
            version: Version string (never a sentinel)

        Returns:
            Parsed version accepted by compare_parsed()

        Raises:
            InvalidVersionError: If the string is not a valid version
        """
        pass

    @abstractmethod
    def compare_parsed(self, a: Any, b: Any) -> int:
        """Compare two values returned by parse().

        Returns:
            Negative, zero or positive as a is lower, equal or higher
        """
        pass

    def valid(self, version: str) -> bool:
        """Check whether a version string is valid for this format."""
        if version in _SENTINEL_RANK:
            return True
        try:
            self.parse(version)
        except InvalidVersionError:
            return False
        return True

    def compare(self, a: str, b: str) -> int:
        """Compare two version strings.

        Returns:
            -1, 0 or 1 as a is lower, equal or higher than b

        Raises:
            InvalidVersionError: If either version is invalid
        """
        parsed_a = self._parse_or_sentinel(a)
        parsed_b = self._parse_or_sentinel(b)

        rank_a = _SENTINEL_RANK.get(a, 0)
        rank_b = _SENTINEL_RANK.get(b, 0)
        if rank_a or rank_b:
            return cmp(rank_a, rank_b)

        if a == b:
            return 0
        return cmp(self.compare_parsed(parsed_a, parsed_b), 0)

    def _parse_or_sentinel(self, version: str) -> Any:
        if version in _SENTINEL_RANK:
            return None
        return self.parse(version)

    def _invalid(self, version: str, reason: str) -> InvalidVersionError:
        return InvalidVersionError(version, self.format_name, reason)
