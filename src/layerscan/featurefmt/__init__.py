"""Package listers for the ecosystems found in container layers."""

from typing import List

from ..common.errors import RegistrationError
from ..registry import PluginRegistry
from ..versionfmt.base import VersionParser
from .apk import ApkLister
from .base import Lister
from .dpkg import DpkgLister
from .npm import NpmLister
from .pip import PipLister

__all__ = [
    "ApkLister",
    "DpkgLister",
    "Lister",
    "NpmLister",
    "PipLister",
    "builtin_listers",
]

_BUILTIN = {
    "apk": ApkLister,
    "dpkg": DpkgLister,
    "npm": NpmLister,
    "pip": PipLister,
}


def builtin_listers(parsers: PluginRegistry[VersionParser]) -> List[Lister]:
    """Instantiate every built-in lister with its registered version parser.

    Raises:
        RegistrationError: If a lister's version parser is not registered
    """
    listers = []
    for format_name, lister_cls in _BUILTIN.items():
        parser = parsers.lookup(format_name)
        if parser is None:
            raise RegistrationError(
                f"no version parser registered for lister '{format_name}'"
            )
        listers.append(lister_cls(parser))
    return listers
