"""Tests for the command line interface."""

import logging

import pytest

from layerscan.__main__ import main


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI installs on the package logger."""
    yield
    logger = logging.getLogger("layerscan")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


class TestMain:
    """Tests for main function."""

    def test_lists_packages(self, layer_file, apk_installed, capsys):
        """Test printing the packages of a layer."""
        path = layer_file({"lib/apk/db/installed": apk_installed})
        with pytest.raises(SystemExit) as exc_info:
            main(["docker", str(path)])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert out.splitlines() == ["curl 7.64.0-r1 apk", "musl 1.1.20-r3 apk"]

    def test_unsupported_format(self, tmp_path, capsys):
        """Test that an unknown format exits with an error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["unknown", str(tmp_path / "x")])
        assert exc_info.value.code == 1
        assert "unsupported image format" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        """Test that a broken configuration file exits with status 2."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("listers: [apk\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["docker", str(tmp_path / "x"), "--config", str(config_file)])
        assert exc_info.value.code == 2

    def test_invalid_header(self, tmp_path):
        """Test that a header without a colon is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["docker", str(tmp_path / "x"), "-H", "Authorization"])
        assert exc_info.value.code == 2
