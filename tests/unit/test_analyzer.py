"""Tests for the composition root and layer analysis."""

import json

import httpx
import pytest

from layerscan.analyzer import LayerAnalyzer, build_registries
from layerscan.common.config import LayerScanConfig, UpdaterConfig
from layerscan.common.errors import (
    LayerUnavailableError,
    RegistrationError,
    UnsupportedFormatError,
)
from layerscan.models import Feature, FeatureVersion, Namespace, Vulnerability

SITE = "usr/lib/python3.7/site-packages"


@pytest.fixture
def layer(layer_file, apk_installed):
    """A gzipped layer with apk, npm and pip packages."""
    return layer_file(
        {
            "lib/apk/db/installed": apk_installed,
            "usr/lib/node_modules/npm/package.json": json.dumps(
                {"name": "npm", "version": "6.4.1"}
            ).encode(),
            f"{SITE}/flask-0.12.2.dist-info/METADATA": b"Name: Flask\nVersion: 0.12.2\n",
            "etc/motd": b"Welcome to Alpine!\n",
        },
        mode="w:gz",
        name="layer.tar.gz",
    )


def as_tuples(features):
    return sorted((f.name, f.version, f.version_format) for f in features)


class TestBuildRegistries:
    """Tests for build_registries function."""

    def test_defaults(self):
        """Test that every built-in plugin is registered."""
        registries = build_registries()
        assert registries.extractors.names() == ["docker", "oci", "singularity"]
        assert registries.listers.names() == ["apk", "dpkg", "npm", "pip"]
        assert registries.parsers.names() == ["apk", "dpkg", "npm", "pip"]
        assert registries.updaters.names() == ["python"]

    def test_registries_are_independent(self):
        """Test that each call builds fresh registries."""
        first = build_registries()
        first.listers.unregister("apk")
        assert "apk" in build_registries().listers

    def test_lister_selection(self):
        """Test limiting the enabled listers."""
        registries = build_registries(LayerScanConfig(listers=["apk", "pip"]))
        assert registries.listers.names() == ["apk", "pip"]

    def test_unknown_lister(self):
        """Test that a misspelled lister fails at startup."""
        with pytest.raises(RegistrationError, match="rpm"):
            build_registries(LayerScanConfig(listers=["apk", "rpm"]))

    def test_disabled_updater(self):
        """Test that disabled updaters are not registered."""
        config = LayerScanConfig(updaters={"python": UpdaterConfig(enabled=False)})
        assert len(build_registries(config).updaters) == 0


class TestLayerAnalyzer:
    """Tests for LayerAnalyzer class."""

    def test_required_filenames(self):
        """Test that patterns are collected once from every lister."""
        analyzer = LayerAnalyzer(build_registries())
        patterns = analyzer.required_filenames()
        assert "lib/apk/db/installed" in patterns
        assert "var/lib/dpkg/status" in patterns
        assert len(patterns) == len(set(patterns))

    def test_analyze_layer(self, layer):
        """Test listing packages of every ecosystem in a layer."""
        analyzer = LayerAnalyzer(build_registries())
        features = analyzer.analyze("docker", str(layer))
        assert as_tuples(features) == [
            ("Flask", "0.12.2", "pip"),
            ("curl", "7.64.0-r1", "apk"),
            ("musl", "1.1.20-r3", "apk"),
            ("npm", "6.4.1", "npm"),
        ]

    def test_analyze_with_namespace(self, layer):
        """Test that a known namespace is attached to every feature."""
        namespace = Namespace.parse("alpine:3.9", "apk")
        analyzer = LayerAnalyzer(build_registries(LayerScanConfig(listers=["apk"])))
        features = analyzer.analyze("oci", str(layer), namespace=namespace)
        assert as_tuples(features) == [
            ("curl", "7.64.0-r1", "apk"),
            ("musl", "1.1.20-r3", "apk"),
        ]
        assert {f.feature.namespace for f in features} == {namespace}

    def test_analyze_remote_layer(self, make_tar, apk_installed):
        """Test analysis of a downloaded layer."""
        data = make_tar({"lib/apk/db/installed": apk_installed})
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=data))
        analyzer = LayerAnalyzer(build_registries(), transport=transport)
        features = analyzer.analyze("docker", "http://layers.example.com/abc")
        assert len(features) == 2

    def test_unsupported_format(self, layer):
        """Test an unknown image format."""
        analyzer = LayerAnalyzer(build_registries())
        with pytest.raises(UnsupportedFormatError):
            analyzer.analyze("rkt", str(layer))

    def test_missing_layer(self, tmp_path):
        """Test a layer path that does not exist."""
        analyzer = LayerAnalyzer(build_registries())
        with pytest.raises(LayerUnavailableError):
            analyzer.analyze("docker", str(tmp_path / "nope.tar"))

    def test_match(self, layer):
        """Test matching analyzed packages against vulnerabilities."""
        namespace = Namespace.parse("alpine:3.9", "pip")
        vuln = Vulnerability(
            name="CVE-2018-1000656",
            namespace=namespace,
            fixed_in=[FeatureVersion(Feature("Flask", namespace), "0.12.3", "pip")],
        )
        analyzer = LayerAnalyzer(build_registries())
        matches = analyzer.match(analyzer.analyze("docker", str(layer)), [vuln])
        assert [(m.feature.name, m.fixed_by) for m in matches] == [("Flask", "0.12.3")]
