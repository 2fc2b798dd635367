"""Tests for the npm lister."""

import json
import logging

import pytest

from layerscan.common.errors import MalformedRecordError
from layerscan.featurefmt.npm import NpmLister, is_installed_manifest, read_manifest


@pytest.fixture
def lister():
    """Create lister instance."""
    return NpmLister()


def manifest(name, version, **extra):
    return json.dumps({"name": name, "version": version, **extra}).encode()


def as_tuples(features):
    return sorted((f.name, f.version, f.version_format) for f in features)


class TestInstalledManifest:
    """Tests for manifest path detection."""

    @pytest.mark.parametrize(
        "path",
        [
            "node_modules/left-pad/package.json",
            "usr/lib/node_modules/npm/package.json",
            "app/node_modules/@babel/core/package.json",
            "app/node_modules/a/node_modules/b/package.json",
        ],
    )
    def test_installed(self, path):
        """Test paths of installed modules."""
        assert is_installed_manifest(path)

    @pytest.mark.parametrize(
        "path",
        [
            "app/package.json",
            "node_modules/left-pad/lib/package.json",
            "node_modules/@babel/package.json",
            "node_modules/left-pad/index.js",
        ],
    )
    def test_not_installed(self, path):
        """Test paths that are not installed module manifests."""
        assert not is_installed_manifest(path)


class TestNpmLister:
    """Tests for NpmLister class."""

    def test_single_package(self, lister):
        """Test one installed module."""
        files = {"node_modules/left-pad/package.json": manifest("left-pad", "1.3.0")}
        assert as_tuples(lister.list_features(files)) == [("left-pad", "1.3.0", "npm")]

    def test_scoped_and_nested(self, lister):
        """Test scoped packages and nested node_modules."""
        files = {
            "app/node_modules/@babel/core/package.json": manifest("@babel/core", "7.8.4"),
            "app/node_modules/a/node_modules/b/package.json": manifest("b", "2.0.0"),
            "app/package.json": manifest("my-app", "0.1.0"),
        }
        assert as_tuples(lister.list_features(files)) == [
            ("@babel/core", "7.8.4", "npm"),
            ("b", "2.0.0", "npm"),
        ]

    def test_duplicates_collapsed(self, lister):
        """Test the same module installed twice."""
        files = {
            "a/node_modules/ms/package.json": manifest("ms", "2.1.2"),
            "b/node_modules/ms/package.json": manifest("ms", "2.1.2"),
        }
        assert as_tuples(lister.list_features(files)) == [("ms", "2.1.2", "npm")]

    def test_bad_entries_skipped(self, lister):
        """Test malformed manifests next to a good one."""
        files = {
            "node_modules/broken/package.json": b"{not json",
            "node_modules/list/package.json": b"[1, 2]",
            "node_modules/noversion/package.json": json.dumps({"name": "noversion"}).encode(),
            "node_modules/ranged/package.json": manifest("ranged", "^1.0.0"),
            "node_modules/good/package.json": manifest("good", "1.0.0"),
        }
        assert as_tuples(lister.list_features(files)) == [("good", "1.0.0", "npm")]

    def test_no_modules(self, lister):
        """Test that a layer without node modules yields nothing."""
        assert lister.list_features({}) == []
        assert lister.list_features({"app/package.json": manifest("x", "1.0.0")}) == []


class TestReadManifest:
    """Tests for read_manifest function."""

    def test_name_and_version(self):
        """Test reading a well-formed manifest."""
        assert read_manifest(manifest(" left-pad ", "1.3.0 ")) == ("left-pad", "1.3.0")

    @pytest.mark.parametrize(
        "content",
        [b"{not json", b"[1, 2]", b'{"name": "x"}', b'{"name": "x", "version": 1}'],
    )
    def test_malformed(self, content):
        """Test that unusable manifests are malformed records."""
        with pytest.raises(MalformedRecordError):
            read_manifest(content)

    def test_malformed_record_is_logged(self, lister, caplog):
        """Test that a skipped manifest names its file."""
        with caplog.at_level(logging.WARNING):
            lister.list_features({"node_modules/broken/package.json": b"{not json"})
        assert "node_modules/broken/package.json" in caplog.text
