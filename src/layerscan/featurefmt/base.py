"""Base class for package listers.

A lister knows the package database or manifest convention of one
ecosystem. It names the files it needs from a layer and turns them into
deduplicated FeatureVersion records. A malformed record raises
MalformedRecordError, which Lister.record() logs before moving on to the
next record; a layer without the ecosystem yields an empty list.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from ..common.errors import MalformedRecordError
from ..common.logger import get_logger
from ..models import Feature, FeatureVersion, FilesMap
from ..versionfmt.base import VersionParser

logger = get_logger("featurefmt")


class Lister(ABC):
    """Abstract base class for package listers.

    Args:
        parser: Version parser used to validate versions. Defaults to the
            ecosystem's own parser.
    """

    def __init__(self, parser: Optional[VersionParser] = None):
        self.parser = parser if parser is not None else self.default_parser()

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the lister name (e.g. 'apk', 'npm')."""
        pass

    @abstractmethod
    def default_parser(self) -> VersionParser:
        """Return the version parser for this ecosystem."""
        pass

    @abstractmethod
    def required_filenames(self) -> List[str]:
        """Return the path patterns this lister needs extracted.

        Patterns are layer-relative paths. Shell-style wildcards are allowed;
        ``*`` also matches across directories.
        """
        pass

    @abstractmethod
    def list_features(self, files: FilesMap) -> List[FeatureVersion]:
        """List the packages described by a layer's files.

        Args:
            files: Files extracted from the layer

        Returns:
            Deduplicated feature versions, in no particular order
        """
        pass

    @property
    def version_format(self) -> str:
        return self.parser.format_name

    def select(self, files: FilesMap, predicate: Callable[[str], bool]) -> FilesMap:
        """Return a new map holding only the entries whose path matches."""
        return {path: content for path, content in files.items() if predicate(path)}

    @contextmanager
    def record(self, path: str) -> Iterator[None]:
        """Log and skip a malformed record raised inside the block.

        Args:
            path: File the record was read from
        """
        try:
            yield
        except MalformedRecordError as e:
            logger.warning(f"{e} (file '{path}'). skipping")

    def feature_version(self, name: str, version: str) -> FeatureVersion:
        """Build a feature version after validating it.

        Raises:
            MalformedRecordError: If the name is empty or the version is
                not valid for this lister's version format
        """
        if not name:
            raise MalformedRecordError(f"package without name (version '{version}')")
        if not self.parser.valid(version):
            raise MalformedRecordError(
                f"could not parse package version '{version}' (package '{name}')"
            )
        return FeatureVersion(
            feature=Feature(name=name),
            version=version,
            version_format=self.version_format,
        )

    def add(
        self, packages: Dict[str, FeatureVersion], name: str, version: str
    ) -> None:
        """Store a feature version, superseding an identical earlier one.

        Raises:
            MalformedRecordError: If the record is not valid
        """
        fv = self.feature_version(name, version)
        packages[fv.key] = fv


def decode(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")
