"""Lister for Alpine packages recorded in the apk installed database."""

from typing import Dict, List

from ..common.logger import get_logger
from ..models import FeatureVersion, FilesMap
from ..versionfmt.apk import ApkVersionParser
from ..versionfmt.base import VersionParser
from .base import Lister, decode

logger = get_logger("featurefmt.apk")

INSTALLED_DB = "lib/apk/db/installed"


class ApkLister(Lister):
    """Lister for ``lib/apk/db/installed``.

    The database is a list of blank-line separated records made of
    ``X:value`` lines; ``P:`` holds the package name and ``V:`` its version.
    """

    @property
    def name(self) -> str:
        return "apk"

    def default_parser(self) -> VersionParser:
        return ApkVersionParser()

    def required_filenames(self) -> List[str]:
        return [INSTALLED_DB]

    def list_features(self, files: FilesMap) -> List[FeatureVersion]:
        content = files.get(INSTALLED_DB)
        if content is None:
            return []

        packages: Dict[str, FeatureVersion] = {}
        name = version = ""

        for line in decode(content).splitlines():
            if not line.strip():
                # Next record; drop whatever the previous one left incomplete.
                name = version = ""
                continue
            if len(line) < 2:
                continue

            key, value = line[:2], line[2:].strip()
            if key == "P:":
                name = value
            elif key == "V:":
                version = value

            if name and version:
                with self.record(INSTALLED_DB):
                    self.add(packages, name, version)
                name = version = ""

        logger.debug(f"Found {len(packages)} apk packages")
        return list(packages.values())
