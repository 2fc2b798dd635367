"""Base class for image format extractors."""

from abc import ABC, abstractmethod
from typing import BinaryIO, List

from ..models import FilesMap


class Extractor(ABC):
    """Abstract base class for image layer extractors.

    An extractor decodes the layer byte stream of one container image
    format and keeps only the files whose paths match the requested
    patterns. It reads the stream to its end on success and on failure;
    closing it is left to the caller that opened it.
    """

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Return the image format identifier (e.g. 'docker')."""
        pass

    @abstractmethod
    def extract_files(self, layer: BinaryIO, patterns: List[str]) -> FilesMap:
        """Extract the files matching any of the patterns.

        Args:
            layer: Readable layer byte stream
            patterns: Layer-relative paths or shell-style wildcards

        Returns:
            Mapping of layer-relative path to file content

        Raises:
            ExtractionError: If the layer cannot be decoded
        """
        pass
