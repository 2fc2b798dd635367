"""Lister for Node packages installed under ``node_modules``."""

import json
from typing import Dict, List, Tuple

from ..common.errors import MalformedRecordError
from ..common.logger import get_logger
from ..models import FeatureVersion, FilesMap
from ..versionfmt.base import VersionParser
from ..versionfmt.npm import NpmVersionParser
from .base import Lister, decode

logger = get_logger("featurefmt.npm")

MODULES_DIR = "node_modules"
MANIFEST = "package.json"


def is_installed_manifest(path: str) -> bool:
    """Check for ``node_modules/<name>/package.json``.

    Scoped packages live one level deeper, in
    ``node_modules/@scope/<name>/package.json``.
    """
    parts = path.split("/")
    if len(parts) < 3 or parts[-1] != MANIFEST:
        return False
    if parts[-3] == MODULES_DIR and not parts[-2].startswith("@"):
        return True
    return len(parts) >= 4 and parts[-4] == MODULES_DIR and parts[-3].startswith("@")


class NpmLister(Lister):
    """Lister for npm packages, one ``package.json`` per installed module."""

    @property
    def name(self) -> str:
        return "npm"

    def default_parser(self) -> VersionParser:
        return NpmVersionParser()

    def required_filenames(self) -> List[str]:
        return [f"*{MODULES_DIR}/*/{MANIFEST}"]

    def list_features(self, files: FilesMap) -> List[FeatureVersion]:
        manifests = self.select(files, is_installed_manifest)
        packages: Dict[str, FeatureVersion] = {}

        for path, content in manifests.items():
            with self.record(path):
                name, version = read_manifest(content)
                self.add(packages, name, version)

        logger.debug(f"Found {len(packages)} npm packages")
        return list(packages.values())


def read_manifest(content: bytes) -> Tuple[str, str]:
    """Read the package name and version from a ``package.json``.

    Raises:
        MalformedRecordError: If the manifest is not a JSON object holding
            string ``name`` and ``version`` fields
    """
    try:
        manifest = json.loads(decode(content))
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"invalid package.json: {e}") from e
    if not isinstance(manifest, dict):
        raise MalformedRecordError("package.json is not an object")

    name = manifest.get("name")
    version = manifest.get("version")
    if not isinstance(name, str) or not isinstance(version, str):
        raise MalformedRecordError("package.json has no name or version")
    return name.strip(), version.strip()
