"""Version format parsers.

Each parser validates the version strings of one packaging ecosystem and
orders them, so installed versions can be compared against fixed versions.
"""

from .base import MAX_VERSION, MIN_VERSION, VersionParser
from .apk import ApkVersionParser
from .dpkg import DpkgVersionParser
from .npm import NpmVersionParser
from .pip import PipVersionParser

__all__ = [
    "MAX_VERSION",
    "MIN_VERSION",
    "VersionParser",
    "ApkVersionParser",
    "DpkgVersionParser",
    "NpmVersionParser",
    "PipVersionParser",
    "builtin_parsers",
]


def builtin_parsers():
    """Instantiate every built-in version parser."""
    return [
        DpkgVersionParser(),
        ApkVersionParser(),
        PipVersionParser(),
        NpmVersionParser(),
    ]
