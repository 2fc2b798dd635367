"""Image format extractors and the extraction driver."""

from typing import List

from ..common.config import ExtractionConfig
from .base import Extractor
from .docker import TarLayerExtractor
from .driver import Driver
from .singularity import SingularityExtractor

__all__ = [
    "Driver",
    "Extractor",
    "SingularityExtractor",
    "TarLayerExtractor",
    "builtin_extractors",
]


def builtin_extractors(config: ExtractionConfig) -> List[Extractor]:
    """Instantiate every built-in extractor."""
    return [
        TarLayerExtractor("docker", config.max_file_size),
        TarLayerExtractor("oci", config.max_file_size),
        SingularityExtractor(
            work_dir=config.work_dir, max_file_size=config.max_file_size
        ),
    ]
