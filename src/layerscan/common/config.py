"""Configuration management for layerscan.

Handles loading and validation of YAML configuration files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_SAFETY_DB_URL = "https://github.com/pyupio/safety-db"

# The safety-db feed carries no distribution scoping, so its records are
# applied to each of these namespaces.
DEFAULT_PYTHON_NAMESPACES = [
    "centos:7",
    "alpine:3.3",
    "alpine:3.4",
    "alpine:3.5",
    "alpine:3.6",
    "alpine:3.7",
    "alpine:3.8",
    "alpine:3.9",
    "debian:8",
    "debian:9",
    "debian:10",
    "debian:unstable",
    "ubuntu:12.04",
    "ubuntu:12.10",
    "ubuntu:13.04",
    "ubuntu:14.04",
    "ubuntu:14.10",
    "ubuntu:15.04",
    "ubuntu:15.10",
    "ubuntu:16.04",
    "ubuntu:16.10",
    "ubuntu:17.04",
    "ubuntu:17.10",
    "ubuntu:18.04",
]

DEFAULT_MAX_FILE_SIZE = 200 * 1024 * 1024
DEFAULT_SPOOL_MAX_MEMORY = 32 * 1024 * 1024


@dataclass
class ExtractionConfig:
    """Configuration for layer retrieval and extraction."""

    insecure_tls: bool = False
    request_timeout: float = 60.0
    work_dir: Optional[str] = None
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    spool_max_memory: int = DEFAULT_SPOOL_MAX_MEMORY


@dataclass
class LoggingConfig:
    """Configuration for logging output."""

    level: str = "INFO"
    log_dir: Optional[str] = None


@dataclass
class UpdaterConfig:
    """Configuration for a vulnerability source updater."""

    enabled: bool = True
    repository_url: str = DEFAULT_SAFETY_DB_URL
    namespaces: List[str] = field(
        default_factory=lambda: list(DEFAULT_PYTHON_NAMESPACES)
    )
    work_dir: Optional[str] = None
    git_timeout: int = 300


@dataclass
class LayerScanConfig:
    """Top-level configuration for layerscan."""

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    listers: Optional[List[str]] = None  # None enables every registered lister
    updaters: Dict[str, UpdaterConfig] = field(default_factory=dict)


def parse_extraction_config(extraction_dict: Dict[str, Any]) -> ExtractionConfig:
    """Parse extraction configuration dictionary.

    Args:
        extraction_dict: Extraction configuration dictionary

    Returns:
        ExtractionConfig instance
    """
    return ExtractionConfig(
        insecure_tls=bool(extraction_dict.get("insecure_tls", False)),
        request_timeout=float(extraction_dict.get("request_timeout", 60.0)),
        work_dir=extraction_dict.get("work_dir"),
        max_file_size=int(
            extraction_dict.get("max_file_size", DEFAULT_MAX_FILE_SIZE)
        ),
        spool_max_memory=int(
            extraction_dict.get("spool_max_memory", DEFAULT_SPOOL_MAX_MEMORY)
        ),
    )


def parse_logging_config(logging_dict: Dict[str, Any]) -> LoggingConfig:
    """Parse logging configuration dictionary.

    Args:
        logging_dict: Logging configuration dictionary

    Returns:
        LoggingConfig instance
    """
    return LoggingConfig(
        level=logging_dict.get("level", "INFO"),
        log_dir=logging_dict.get("log_dir"),
    )


def parse_updater_config(updater_dict: Dict[str, Any]) -> UpdaterConfig:
    """Parse an updater configuration dictionary.

    Args:
        updater_dict: Updater configuration dictionary

    Returns:
        UpdaterConfig instance
    """
    return UpdaterConfig(
        enabled=updater_dict.get("enabled", True),
        repository_url=updater_dict.get("repository_url", DEFAULT_SAFETY_DB_URL),
        namespaces=list(
            updater_dict.get("namespaces", DEFAULT_PYTHON_NAMESPACES)
        ),
        work_dir=updater_dict.get("work_dir"),
        git_timeout=int(updater_dict.get("git_timeout", 300)),
    )


def parse_config(config_dict: Dict[str, Any]) -> LayerScanConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        LayerScanConfig instance
    """
    updaters = {}
    for name, updater_dict in (config_dict.get("updaters") or {}).items():
        updaters[name.lower()] = parse_updater_config(updater_dict or {})

    listers = config_dict.get("listers")
    if listers is not None:
        listers = [name.lower() for name in listers]

    return LayerScanConfig(
        extraction=parse_extraction_config(config_dict.get("extraction") or {}),
        logging=parse_logging_config(config_dict.get("logging") or {}),
        listers=listers,
        updaters=updaters,
    )


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration.

    Args:
        obj: Configuration object (dict, list, str, etc.)

    Returns:
        Configuration with expanded environment variables
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: Optional[str] = None) -> LayerScanConfig:
    """Load and parse configuration into typed dataclass.

    Args:
        config_path: Path to configuration file, or None for defaults

    Returns:
        LayerScanConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        return LayerScanConfig()
    return parse_config(load_config(config_path))
