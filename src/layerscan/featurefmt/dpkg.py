"""Lister for Debian packages recorded in the dpkg status database."""

import fnmatch
from typing import Dict, Iterator, List

from ..common.logger import get_logger
from ..models import FeatureVersion, FilesMap
from ..versionfmt.base import VersionParser
from ..versionfmt.dpkg import DpkgVersionParser
from .base import Lister, decode

logger = get_logger("featurefmt.dpkg")

STATUS_FILE = "var/lib/dpkg/status"
# Distroless images keep one status file per package instead.
STATUS_DIR_PATTERN = "var/lib/dpkg/status.d/*"


def parse_paragraphs(content: str) -> Iterator[Dict[str, str]]:
    """Split RFC822-style control data into field dictionaries.

    Args:
        content: Control file content

    Yields:
        One dictionary per blank-line separated paragraph
    """
    fields: Dict[str, str] = {}
    current_key = None
    current_value: List[str] = []

    for line in content.split("\n"):
        if line.startswith(" ") or line.startswith("\t"):
            # Continuation of previous field
            if current_key:
                current_value.append(line.strip())
        elif ":" in line:
            if current_key:
                fields[current_key] = "\n".join(current_value)
            key, value = line.split(":", 1)
            current_key = key.strip()
            current_value = [value.strip()]
        else:
            if current_key:
                fields[current_key] = "\n".join(current_value)
            current_key = None
            current_value = []
            if not line.strip() and fields:
                yield fields
                fields = {}

    if current_key:
        fields[current_key] = "\n".join(current_value)
    if fields:
        yield fields


class DpkgLister(Lister):
    """Lister for ``var/lib/dpkg/status``.

    Binary packages are reported with their own version. When a paragraph
    names a source package, the source package is reported as well, using
    the version given in parentheses or else the binary version.
    """

    @property
    def name(self) -> str:
        return "dpkg"

    def default_parser(self) -> VersionParser:
        return DpkgVersionParser()

    def required_filenames(self) -> List[str]:
        return [STATUS_FILE, STATUS_DIR_PATTERN]

    def _is_status_file(self, path: str) -> bool:
        return path == STATUS_FILE or fnmatch.fnmatchcase(path, STATUS_DIR_PATTERN)

    def list_features(self, files: FilesMap) -> List[FeatureVersion]:
        status_files = self.select(files, self._is_status_file)
        packages: Dict[str, FeatureVersion] = {}

        for path, content in status_files.items():
            for fields in parse_paragraphs(decode(content)):
                self._add_paragraph(packages, fields, path)

        logger.debug(f"Found {len(packages)} dpkg packages")
        return list(packages.values())

    def _add_paragraph(
        self, packages: Dict[str, FeatureVersion], fields: Dict[str, str], path: str
    ) -> None:
        name = fields.get("Package", "").strip()
        version = fields.get("Version", "").strip()
        if not name or not version:
            return

        status = fields.get("Status", "").split()
        if status and status[-1] != "installed":
            logger.debug(f"Skipping {name}: status '{' '.join(status)}'")
            return

        with self.record(path):
            self.add(packages, name, version)
            source = fields.get("Source", "").strip()
            if source:
                source_name, _, rest = source.partition(" ")
                source_version = rest.strip().strip("()").strip() or version
                self.add(packages, source_name, source_version)
