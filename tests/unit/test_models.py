"""Tests for the data model."""

import pytest

from layerscan.models import Feature, FeatureVersion, Namespace, Vulnerability


class TestNamespace:
    """Tests for Namespace."""

    def test_parse_round_trip(self):
        """Test that the string form survives parsing."""
        ns = Namespace.parse("alpine:3.9", "apk")
        assert str(ns) == "alpine:3.9"
        assert ns.distro == "alpine"
        assert ns.release == "3.9"
        assert Namespace.parse(str(ns), "apk") == ns

    @pytest.mark.parametrize("name", ["alpine", ":3.9", "alpine:", ""])
    def test_parse_invalid(self, name):
        """Test rejection of malformed namespace names."""
        with pytest.raises(ValueError):
            Namespace.parse(name, "apk")


class TestFeatureVersion:
    """Tests for FeatureVersion."""

    def test_key(self):
        """Test the deduplication key."""
        fv = FeatureVersion(Feature("curl"), "7.64.0-r1", "apk")
        assert fv.key == "curl#7.64.0-r1"
        assert fv.name == "curl"

    def test_with_namespace(self):
        """Test attaching a namespace."""
        ns = Namespace("alpine:3.9", "apk")
        fv = FeatureVersion(Feature("curl"), "7.64.0-r1", "apk").with_namespace(ns)
        assert fv.feature.namespace == ns
        assert fv.version == "7.64.0-r1"


class TestVulnerability:
    """Tests for Vulnerability."""

    def test_empty_fixed_in_is_invalid(self):
        """Test that a vulnerability without fixes is not usable."""
        ns = Namespace("debian:9", "dpkg")
        assert not Vulnerability(name="CVE-2019-0001", namespace=ns).is_valid()
        vuln = Vulnerability(
            name="CVE-2019-0001",
            namespace=ns,
            fixed_in=[FeatureVersion(Feature("openssl", ns), "1.1.0j-1", "dpkg")],
        )
        assert vuln.is_valid()
