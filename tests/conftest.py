"""Pytest configuration and shared fixtures."""

import io
import tarfile

import pytest


class MemoryDatastore:
    """In-memory stand-in for the vulnerability datastore."""

    def __init__(self):
        self.values = {}
        self.vulnerabilities = []
        self.set_calls = []
        self.insert_calls = 0

    def get_key_value(self, key):
        return self.values.get(key)

    def set_key_value(self, key, value):
        self.set_calls.append((key, value))
        self.values[key] = value

    def insert_vulnerabilities(self, vulnerabilities):
        self.insert_calls += 1
        self.vulnerabilities.extend(vulnerabilities)


@pytest.fixture
def datastore():
    """Empty in-memory datastore."""
    return MemoryDatastore()


def build_tar(files, mode="w", directories=()):
    """Build a tar archive in memory.

    Args:
        files: Mapping of member name to bytes content
        mode: tarfile write mode, e.g. "w:gz"
        directories: Extra directory member names

    Returns:
        Archive bytes
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tar:
        for name in directories:
            info = tarfile.TarInfo(name=name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for name, content in files.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


@pytest.fixture
def layer_file(tmp_path):
    """Factory writing a tar layer to disk and returning its path."""

    def _make(files, mode="w", name="layer.tar"):
        path = tmp_path / name
        path.write_bytes(build_tar(files, mode))
        return path

    return _make


APK_INSTALLED = (
    b"C:Q1abc=\n"
    b"P:curl\n"
    b"V:7.64.0-r1\n"
    b"A:x86_64\n"
    b"\n"
    b"C:Q1def=\n"
    b"P:musl\n"
    b"V:1.1.20-r3\n"
    b"A:x86_64\n"
    b"\n"
)


@pytest.fixture
def apk_installed():
    """Sample apk installed database."""
    return APK_INSTALLED


@pytest.fixture
def make_tar():
    """Factory building tar archive bytes in memory."""
    return build_tar
