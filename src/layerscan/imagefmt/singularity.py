"""Extractor for Singularity images.

Singularity images are either squashfs filesystems (``.simg``) or SIF
containers wrapping a squashfs partition. The image is spooled to a work
directory and unpacked with ``unsquashfs``. Images that were already
converted to a tarball are read directly.
"""

import os
import shutil
import subprocess
import tarfile
import tempfile
from pathlib import Path
from typing import BinaryIO, List, Optional

from ..common.config import DEFAULT_MAX_FILE_SIZE
from ..common.errors import ExtractionError
from ..common.logger import get_logger
from ..models import FilesMap
from .base import Extractor
from .tarutil import drain, extract_files, path_matches

logger = get_logger("imagefmt.singularity")

SQUASHFS_MAGIC = b"hsqs"
# s_major of a squashfs 4.x superblock, little endian
SQUASHFS_MAJOR_OFFSET = 28
SQUASHFS_MAJOR = b"\x04\x00"
SIF_MAGIC = b"SIF_MAGIC"
SIF_MAGIC_OFFSET = 32


def _is_superblock(f: BinaryIO, offset: int) -> bool:
    f.seek(offset + SQUASHFS_MAJOR_OFFSET)
    return f.read(len(SQUASHFS_MAJOR)) == SQUASHFS_MAJOR


def find_squashfs_offset(image: Path, chunk_size: int = 1024 * 1024) -> Optional[int]:
    """Locate the squashfs filesystem inside an image file.

    SIF containers are not parsed through their descriptor table. The file
    is scanned for the squashfs magic instead, and a hit only counts when a
    version 4 superblock follows it. A non-squashfs partition stored before
    the root filesystem that happens to contain such a superblock would
    still be picked.

    Args:
        image: Path to a squashfs or SIF image
        chunk_size: Read size used while scanning a SIF container

    Returns:
        Byte offset of the squashfs superblock, or None if there is none
    """
    overlap = len(SQUASHFS_MAGIC) - 1
    with image.open("rb") as f:
        header = f.read(SIF_MAGIC_OFFSET + len(SIF_MAGIC))
        if header.startswith(SQUASHFS_MAGIC):
            return 0
        if header[SIF_MAGIC_OFFSET:] != SIF_MAGIC:
            return None

        position = 0
        while True:
            f.seek(position)
            data = f.read(chunk_size + overlap)
            if len(data) < len(SQUASHFS_MAGIC):
                return None
            index = data.find(SQUASHFS_MAGIC)
            while index >= 0:
                if _is_superblock(f, position + index):
                    return position + index
                index = data.find(SQUASHFS_MAGIC, index + 1)
            position += chunk_size


class SingularityExtractor(Extractor):
    """Extractor for Singularity squashfs and SIF images.

    Args:
        work_dir: Directory for temporary image copies (system default if None)
        max_file_size: Largest file size accepted, in bytes
        unsquashfs: unsquashfs executable
        timeout: Time limit for unsquashfs, in seconds
    """

    def __init__(
        self,
        work_dir: Optional[str] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        unsquashfs: str = "unsquashfs",
        timeout: int = 600,
    ):
        self.work_dir = work_dir
        self.max_file_size = max_file_size
        self.unsquashfs = unsquashfs
        self.timeout = timeout

    @property
    def format_name(self) -> str:
        return "singularity"

    def extract_files(self, layer: BinaryIO, patterns: List[str]) -> FilesMap:
        try:
            with tempfile.TemporaryDirectory(
                prefix="layerscan-singularity-", dir=self.work_dir
            ) as temp_dir:
                image = Path(temp_dir) / "image"
                with image.open("wb") as out:
                    shutil.copyfileobj(layer, out)

                if tarfile.is_tarfile(image):
                    with image.open("rb") as f:
                        return extract_files(f, patterns, self.max_file_size)

                offset = find_squashfs_offset(image)
                if offset is None:
                    raise ExtractionError("not a squashfs or SIF image")

                rootfs = Path(temp_dir) / "rootfs"
                self._unsquash(image, rootfs, offset)
                return self._collect(rootfs, patterns)
        except OSError as e:
            raise ExtractionError(f"could not unpack singularity image: {e}") from e
        finally:
            drain(layer)

    def _unsquash(self, image: Path, dest: Path, offset: int) -> None:
        cmd = [self.unsquashfs, "-no-progress", "-d", str(dest)]
        if offset:
            cmd.extend(["-o", str(offset)])
        cmd.append(str(image))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExtractionError(f"{self.unsquashfs} is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(
                f"{self.unsquashfs} timed out after {self.timeout}s"
            ) from e

        if result.returncode != 0:
            raise ExtractionError(
                f"{self.unsquashfs} failed: {result.stderr.strip()}"
            )

    def _collect(self, rootfs: Path, patterns: List[str]) -> FilesMap:
        files: FilesMap = {}
        for dirpath, _, filenames in os.walk(rootfs):
            for filename in filenames:
                full_path = Path(dirpath) / filename
                if full_path.is_symlink() or not full_path.is_file():
                    continue
                path = full_path.relative_to(rootfs).as_posix()
                if not path_matches(path, patterns):
                    continue
                if full_path.stat().st_size > self.max_file_size:
                    raise ExtractionError(
                        f"{path} is larger than the {self.max_file_size} byte limit"
                    )
                files[path] = full_path.read_bytes()

        logger.debug(f"Extracted {len(files)} files from singularity image")
        return files
