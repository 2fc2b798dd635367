"""Vulnerability source updaters."""

from typing import Dict, List

from ..common.config import UpdaterConfig
from .base import Datastore, UpdateResponse, Updater, run_updaters
from .python import SafetyDBUpdater

__all__ = [
    "Datastore",
    "SafetyDBUpdater",
    "UpdateResponse",
    "Updater",
    "builtin_updaters",
    "run_updaters",
]


def builtin_updaters(configs: Dict[str, UpdaterConfig]) -> List[Updater]:
    """Instantiate the built-in updaters that are not disabled."""
    config = configs.get("python", UpdaterConfig())
    if not config.enabled:
        return []
    return [
        SafetyDBUpdater(
            repository_url=config.repository_url,
            namespaces=config.namespaces,
            work_dir=config.work_dir,
            git_timeout=config.git_timeout,
        )
    ]
