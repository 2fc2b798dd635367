"""Helpers for reading selected files out of tar layer streams."""

import fnmatch
import lzma
import posixpath
import tarfile
import zlib
from typing import BinaryIO, Iterable, Optional

from ..common.config import DEFAULT_MAX_FILE_SIZE
from ..common.errors import ExtractionError
from ..common.logger import get_logger
from ..models import FilesMap

logger = get_logger("imagefmt.tarutil")

CHUNK_SIZE = 64 * 1024


def normalize_path(name: str) -> Optional[str]:
    """Turn an archive member name into a layer-relative path.

    Leading ``./`` and ``/`` are removed. Names that climb out of the
    layer with ``..`` are rejected.

    Returns:
        Normalized path, or None if the name is unusable
    """
    if ".." in name.split("/"):
        return None
    path = posixpath.normpath(name.lstrip("/"))
    if path in (".", ""):
        return None
    return path.lstrip("/")


def path_matches(path: str, patterns: Iterable[str]) -> bool:
    """Check a layer-relative path against exact paths or wildcards."""
    return any(
        path == pattern or fnmatch.fnmatchcase(path, pattern) for pattern in patterns
    )


def drain(stream: BinaryIO) -> None:
    """Read a stream to its end so the producer is not left blocked."""
    try:
        while stream.read(CHUNK_SIZE):
            pass
    except (OSError, ValueError) as e:
        logger.debug(f"Could not drain layer stream: {e}")


def extract_files(
    layer: BinaryIO,
    patterns: Iterable[str],
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
) -> FilesMap:
    """Read the regular files matching the patterns from a tar stream.

    The tar may be uncompressed or compressed with gzip, bzip2 or xz. It
    is read sequentially, so the stream does not need to be seekable.

    Args:
        layer: Tar byte stream
        patterns: Layer-relative paths or shell-style wildcards
        max_file_size: Largest file size accepted, in bytes

    Returns:
        Mapping of layer-relative path to file content

    Raises:
        ExtractionError: If the stream is not a readable tar or a
            matching file exceeds max_file_size
    """
    patterns = list(patterns)
    files: FilesMap = {}

    try:
        with tarfile.open(fileobj=layer, mode="r|*") as tar:
            for member in tar:
                if not member.isfile():
                    continue
                path = normalize_path(member.name)
                if path is None or not path_matches(path, patterns):
                    continue
                if member.size > max_file_size:
                    raise ExtractionError(
                        f"{path} is larger than the {max_file_size} byte limit"
                    )
                f = tar.extractfile(member)
                if f is not None:
                    files[path] = f.read()
    except (tarfile.TarError, EOFError, zlib.error, lzma.LZMAError, OSError) as e:
        raise ExtractionError(f"could not read layer archive: {e}") from e
    finally:
        drain(layer)

    logger.debug(f"Extracted {len(files)} files from layer")
    return files
