"""Tests for the apk lister."""

import logging

import pytest

from layerscan.common.errors import MalformedRecordError
from layerscan.featurefmt.apk import INSTALLED_DB, ApkLister
from layerscan.models import Feature, FeatureVersion


@pytest.fixture
def lister():
    """Create lister instance."""
    return ApkLister()


def as_tuples(features):
    return sorted((f.name, f.version, f.version_format) for f in features)


class TestApkLister:
    """Tests for ApkLister class."""

    def test_name_and_required_files(self, lister):
        """Test lister identity."""
        assert lister.name == "apk"
        assert lister.version_format == "apk"
        assert lister.required_filenames() == ["lib/apk/db/installed"]

    def test_list_features(self, lister, apk_installed):
        """Test listing the installed database."""
        features = lister.list_features({INSTALLED_DB: apk_installed})
        assert as_tuples(features) == [
            ("curl", "7.64.0-r1", "apk"),
            ("musl", "1.1.20-r3", "apk"),
        ]
        assert FeatureVersion(Feature("curl"), "7.64.0-r1", "apk") in features

    def test_compact_database(self, lister):
        """Test records without any extra fields."""
        content = b"P:curl\nV:7.64.0-r1\n\nP:musl\nV:1.1.20-r3\n\n"
        features = lister.list_features({INSTALLED_DB: content})
        assert as_tuples(features) == [
            ("curl", "7.64.0-r1", "apk"),
            ("musl", "1.1.20-r3", "apk"),
        ]

    def test_missing_database(self, lister):
        """Test that a layer without apk yields nothing."""
        assert lister.list_features({"etc/os-release": b"ID=alpine\n"}) == []
        assert lister.list_features({}) == []

    def test_duplicates_collapsed(self, lister):
        """Test that repeated records produce one feature."""
        content = b"P:curl\nV:7.64.0-r1\n\nP:curl\nV:7.64.0-r1\n\n"
        features = lister.list_features({INSTALLED_DB: content})
        assert as_tuples(features) == [("curl", "7.64.0-r1", "apk")]

    def test_invalid_version_skipped(self, lister, caplog):
        """Test that a bad version drops only its own record."""
        content = b"P:broken\nV:not-a-version\n\nP:musl\nV:1.1.20-r3\n\n"
        with caplog.at_level(logging.WARNING):
            features = lister.list_features({INSTALLED_DB: content})
        assert as_tuples(features) == [("musl", "1.1.20-r3", "apk")]
        assert "not-a-version" in caplog.text

    def test_incomplete_record_does_not_leak(self, lister):
        """Test that a record without version does not borrow the next one's."""
        content = b"P:orphan\n\nV:1.0-r0\nP:real\n\n"
        features = lister.list_features({INSTALLED_DB: content})
        assert as_tuples(features) == [("real", "1.0-r0", "apk")]

    def test_files_map_not_modified(self, lister, apk_installed):
        """Test that listing leaves the input untouched."""
        files = {INSTALLED_DB: apk_installed, "other": b"x"}
        lister.list_features(files)
        assert files == {INSTALLED_DB: apk_installed, "other": b"x"}


class TestRecord:
    """Tests for Lister.record and record validation."""

    def test_malformed_record_skipped(self, lister, caplog):
        """Test that only malformed records are swallowed."""
        with caplog.at_level(logging.WARNING):
            with lister.record("lib/apk/db/installed"):
                raise MalformedRecordError("bad record")
        assert "bad record" in caplog.text

        with pytest.raises(KeyError):
            with lister.record("lib/apk/db/installed"):
                raise KeyError("other")

    def test_add_validates(self, lister):
        """Test that add rejects empty names and invalid versions."""
        packages = {}
        with pytest.raises(MalformedRecordError):
            lister.add(packages, "", "1.0-r0")
        with pytest.raises(MalformedRecordError):
            lister.add(packages, "curl", "latest")
        assert packages == {}
