"""Lister for installed Python distributions.

Installed distributions leave core metadata behind in one of these places:
``<name>.dist-info/METADATA`` (wheels), ``<name>.egg-info/PKG-INFO``
(setuptools), a bare ``<name>.egg-info`` file (distutils) or
``<name>.egg/EGG-INFO/PKG-INFO`` (unzipped eggs from easy_install).
"""

import email.parser
from typing import Dict, List

from ..common.logger import get_logger
from ..models import FeatureVersion, FilesMap
from ..versionfmt.base import VersionParser
from ..versionfmt.pip import PipVersionParser
from .base import Lister, decode

logger = get_logger("featurefmt.pip")

METADATA_SUFFIXES = (
    ".dist-info/METADATA",
    ".egg-info/PKG-INFO",
    ".egg-info",
    ".egg/EGG-INFO/PKG-INFO",
)


def is_metadata_file(path: str) -> bool:
    return path.endswith(METADATA_SUFFIXES)


class PipLister(Lister):
    """Lister for Python packages described by core metadata files."""

    @property
    def name(self) -> str:
        return "pip"

    def default_parser(self) -> VersionParser:
        return PipVersionParser()

    def required_filenames(self) -> List[str]:
        return [f"*{suffix}" for suffix in METADATA_SUFFIXES]

    def list_features(self, files: FilesMap) -> List[FeatureVersion]:
        metadata_files = self.select(files, is_metadata_file)
        packages: Dict[str, FeatureVersion] = {}
        header_parser = email.parser.HeaderParser()

        for path, content in metadata_files.items():
            # Core metadata uses RFC 822 headers
            msg = header_parser.parsestr(decode(content))
            name = (msg.get("Name") or "").strip()
            version = (msg.get("Version") or "").strip()
            if not name or not version:
                logger.debug(f"No name or version in {path}")
                continue

            with self.record(path):
                self.add(packages, name, version)

        logger.debug(f"Found {len(packages)} pip packages")
        return list(packages.values())
