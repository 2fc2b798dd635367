"""Python package version format (PEP 440), backed by ``packaging``."""

from packaging.version import InvalidVersion, Version

from .base import VersionParser, cmp

PARSER_NAME = "pip"


class PipVersionParser(VersionParser):
    """Parser for PEP 440 versions."""

    @property
    def format_name(self) -> str:
        return PARSER_NAME

    def parse(self, version: str) -> Version:
        try:
            return Version(version.strip())
        except InvalidVersion as e:
            raise self._invalid(version, str(e)) from e

    def compare_parsed(self, a: Version, b: Version) -> int:
        return cmp(a, b)
