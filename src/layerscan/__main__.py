"""CLI interface for layer analysis."""

import argparse
import sys

import yaml

from .analyzer import LayerAnalyzer, build_registries
from .common.config import load_typed_config
from .common.errors import LayerScanError
from .common.logger import setup_logger


def main(argv=None):
    """Main entry point for the layerscan CLI."""
    parser = argparse.ArgumentParser(
        prog="layerscan", description="List the packages installed by an image layer."
    )
    parser.add_argument("format", help="image format (docker, oci, singularity)")
    parser.add_argument("source", help="layer path or http(s) URL")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="HTTP header for remote layers",
    )
    args = parser.parse_args(argv)

    try:
        config = load_typed_config(args.config)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Error: cannot load configuration: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logger(level=config.logging.level, log_dir=config.logging.log_dir)

    headers = {}
    for header in args.header:
        name, sep, value = header.partition(":")
        if not sep:
            parser.error(f"invalid header '{header}', expected NAME:VALUE")
        headers[name.strip()] = value.strip()

    try:
        analyzer = LayerAnalyzer(build_registries(config), config)
        features = analyzer.analyze(args.format, args.source, headers or None)
    except LayerScanError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for fv in sorted(features, key=lambda f: (f.version_format, f.name, f.version)):
        print(f"{fv.name} {fv.version} {fv.version_format}")

    sys.exit(0)


if __name__ == "__main__":
    main()
