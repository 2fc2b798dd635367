"""Composition root: registries and the layer analysis pipeline."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from .common.config import LayerScanConfig
from .common.errors import RegistrationError
from .common.logger import get_logger
from .featurefmt import Lister, builtin_listers
from .imagefmt import Driver, Extractor, builtin_extractors
from .models import FeatureVersion, Namespace, Vulnerability
from .matcher import VulnerabilityMatch, match_vulnerabilities
from .registry import PluginRegistry
from .versionfmt import VersionParser, builtin_parsers
from .vulnsrc import Updater, builtin_updaters

logger = get_logger("analyzer")


@dataclass
class Registries:
    """The plugin registries of one process."""

    extractors: PluginRegistry[Extractor] = field(
        default_factory=lambda: PluginRegistry("extractor")
    )
    listers: PluginRegistry[Lister] = field(
        default_factory=lambda: PluginRegistry("lister")
    )
    parsers: PluginRegistry[VersionParser] = field(
        default_factory=lambda: PluginRegistry("version parser")
    )
    updaters: PluginRegistry[Updater] = field(
        default_factory=lambda: PluginRegistry("updater")
    )


def build_registries(config: Optional[LayerScanConfig] = None) -> Registries:
    """Create registries holding every built-in plugin.

    Listers are limited to ``config.listers`` when it is set.

    Raises:
        RegistrationError: If a plugin is misconfigured or registered twice
    """
    config = config or LayerScanConfig()
    registries = Registries()

    for parser in builtin_parsers():
        registries.parsers.register(parser.format_name, parser)

    for extractor in builtin_extractors(config.extraction):
        registries.extractors.register(extractor.format_name, extractor)

    for lister in builtin_listers(registries.parsers):
        if config.listers is None or lister.name in config.listers:
            registries.listers.register(lister.name, lister)

    if config.listers is not None:
        unknown = set(config.listers) - set(registries.listers.names())
        if unknown:
            raise RegistrationError(f"unknown listers: {', '.join(sorted(unknown))}")

    for updater in builtin_updaters(config.updaters):
        registries.updaters.register(updater.name, updater)

    logger.debug(
        f"Registered extractors={registries.extractors.names()} "
        f"listers={registries.listers.names()} "
        f"parsers={registries.parsers.names()}"
    )
    return registries


class LayerAnalyzer:
    """Turns a layer into the list of packages installed by it.

    Args:
        registries: Plugin registries
        config: Extraction settings
        transport: Optional httpx transport for layer downloads
    """

    def __init__(
        self,
        registries: Registries,
        config: Optional[LayerScanConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        config = config or LayerScanConfig()
        self.registries = registries
        self.driver = Driver(
            registries.extractors,
            insecure_tls=config.extraction.insecure_tls,
            timeout=config.extraction.request_timeout,
            work_dir=config.extraction.work_dir,
            spool_max_memory=config.extraction.spool_max_memory,
            transport=transport,
        )

    def required_filenames(self) -> List[str]:
        patterns: List[str] = []
        for lister in self.registries.listers.all().values():
            for pattern in lister.required_filenames():
                if pattern not in patterns:
                    patterns.append(pattern)
        return patterns

    def analyze(
        self,
        format_name: str,
        source: str,
        headers: Optional[Dict[str, str]] = None,
        namespace: Optional[Namespace] = None,
    ) -> List[FeatureVersion]:
        """Extract a layer and list the packages of every ecosystem in it.

        Args:
            format_name: Image format of the layer
            source: Local path or http(s) URL of the layer
            headers: HTTP headers for remote layers
            namespace: Namespace to attach to the features, if known

        Returns:
            Feature versions from all listers

        Raises:
            UnsupportedFormatError: If the image format is unknown
            LayerUnavailableError: If the layer cannot be obtained
            ExtractionError: If the layer cannot be decoded
        """
        files = self.driver.extract(
            format_name, source, headers, self.required_filenames()
        )

        features: Dict[tuple, FeatureVersion] = {}
        for name, lister in sorted(self.registries.listers.all().items()):
            listed = lister.list_features(files)
            logger.info(f"{name}: {len(listed)} packages")
            for fv in listed:
                if namespace is not None:
                    fv = fv.with_namespace(namespace)
                features[(fv.version_format, fv.name, fv.version)] = fv

        return list(features.values())

    def match(
        self,
        features: List[FeatureVersion],
        vulnerabilities: List[Vulnerability],
    ) -> List[VulnerabilityMatch]:
        return match_vulnerabilities(features, vulnerabilities, self.registries.parsers)
