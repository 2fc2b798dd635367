"""Extractor for tar based layers (Docker and OCI images)."""

from typing import BinaryIO, List

from ..common.config import DEFAULT_MAX_FILE_SIZE
from ..models import FilesMap
from .base import Extractor
from .tarutil import extract_files


class TarLayerExtractor(Extractor):
    """Extractor for layers shipped as (optionally compressed) tarballs.

    Docker and OCI layers share this representation, so one class serves
    both format names.
    """

    def __init__(self, format_name: str = "docker", max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        self._format_name = format_name
        self.max_file_size = max_file_size

    @property
    def format_name(self) -> str:
        return self._format_name

    def extract_files(self, layer: BinaryIO, patterns: List[str]) -> FilesMap:
        return extract_files(layer, patterns, self.max_file_size)
