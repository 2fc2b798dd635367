"""Extraction driver.

Streams an image layer from disk or over HTTP, resolves the image format
to a registered extractor and returns the requested files.
"""

import tempfile
from contextlib import contextmanager
from typing import BinaryIO, Dict, Iterable, Iterator, Optional

import httpx

from ..common.config import DEFAULT_SPOOL_MAX_MEMORY
from ..common.errors import LayerUnavailableError, UnsupportedFormatError
from ..common.logger import get_logger
from ..models import FilesMap
from ..registry import PluginRegistry
from .base import Extractor

logger = get_logger("imagefmt.driver")

REMOTE_PREFIXES = ("http://", "https://")


class Driver:
    """Fetches layers and hands them to the extractor for their format.

    Args:
        extractors: Registry of extractors by image format name
        insecure_tls: Skip TLS certificate and hostname verification
        timeout: HTTP request timeout, in seconds
        work_dir: Directory for spooling downloaded layers
        spool_max_memory: Download size kept in memory before spooling to disk
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        extractors: PluginRegistry[Extractor],
        insecure_tls: bool = False,
        timeout: float = 60.0,
        work_dir: Optional[str] = None,
        spool_max_memory: int = DEFAULT_SPOOL_MAX_MEMORY,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.extractors = extractors
        self.insecure_tls = insecure_tls
        self.timeout = timeout
        self.work_dir = work_dir
        self.spool_max_memory = spool_max_memory
        self.transport = transport
        if insecure_tls:
            logger.warning("TLS verification is disabled for layer downloads")

    def extract(
        self,
        format_name: str,
        source: str,
        headers: Optional[Dict[str, str]] = None,
        wanted_files: Optional[Iterable[str]] = None,
    ) -> FilesMap:
        """Extract files from a layer.

        Args:
            format_name: Image format (case-insensitive, e.g. 'docker')
            source: Local path or http(s) URL of the layer
            headers: HTTP headers sent when source is a URL
            wanted_files: Layer-relative paths or wildcards to keep

        Returns:
            Mapping of layer-relative path to file content

        Raises:
            UnsupportedFormatError: If no extractor handles format_name
            LayerUnavailableError: If the layer cannot be downloaded or opened
            ExtractionError: If the extractor cannot decode the layer
        """
        extractor = self.extractors.lookup(format_name)
        if extractor is None:
            raise UnsupportedFormatError(format_name)

        with self._open_layer(source, headers) as layer:
            return extractor.extract_files(layer, list(wanted_files or []))

    @contextmanager
    def _open_layer(
        self, source: str, headers: Optional[Dict[str, str]]
    ) -> Iterator[BinaryIO]:
        if source.startswith(REMOTE_PREFIXES):
            layer = self._download(source, headers)
        else:
            try:
                layer = open(source, "rb")
            except OSError as e:
                logger.warning(f"could not open layer {source}: {e}")
                raise LayerUnavailableError() from None

        with layer:
            yield layer

    def _download(self, url: str, headers: Optional[Dict[str, str]]) -> BinaryIO:
        spool = tempfile.SpooledTemporaryFile(
            max_size=self.spool_max_memory, dir=self.work_dir
        )
        try:
            self._fetch(url, headers, spool)
        except BaseException:
            spool.close()
            raise
        spool.seek(0)
        return spool

    def _fetch(
        self, url: str, headers: Optional[Dict[str, str]], out: BinaryIO
    ) -> None:
        try:
            with httpx.Client(
                verify=not self.insecure_tls,
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                with client.stream("GET", url, headers=headers or {}) as response:
                    if not response.is_success:
                        logger.warning(
                            f"could not download layer: expected 2XX, "
                            f"got {response.status_code}"
                        )
                        raise LayerUnavailableError()
                    for chunk in response.iter_bytes():
                        out.write(chunk)
        except httpx.HTTPError as e:
            logger.warning(f"could not download layer: {e}")
            raise LayerUnavailableError() from None
