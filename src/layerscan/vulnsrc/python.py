"""Updater for the safety-db feed of vulnerable Python packages.

The feed is a git repository whose ``data/insecure_full.json`` maps package
names to advisories. The HEAD commit id is the feed fingerprint.

The feed has no notion of distribution, so every advisory is applied to
each configured namespace. This over-approximates: a namespace receives
advisories for packages it may never ship.
"""

import json
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..common.config import DEFAULT_PYTHON_NAMESPACES, DEFAULT_SAFETY_DB_URL
from ..common.errors import FeedUnavailableError
from ..common.logger import get_logger
from ..models import Feature, FeatureVersion, Namespace, Severity, Vulnerability
from ..versionfmt.pip import PARSER_NAME, PipVersionParser
from .base import Datastore, UpdateResponse, Updater

logger = get_logger("vulnsrc.python")

FLAG_NAME = "python-sec-db"
FEED_FILE = "data/insecure_full.json"
CVE_URL_PREFIX = "https://cve.mitre.org/cgi-bin/cvename.cgi?name="


def parse_cve_ids(value: Any) -> List[str]:
    """Split the advisory ``cve`` field into CVE ids."""
    if not isinstance(value, str):
        return []
    ids = [part.strip() for part in value.split(",")]
    return [cve for cve in ids if cve.upper().startswith("CVE-")]


def parse_fixed_version(specs: Iterable[str]) -> Optional[str]:
    """Find the version that fixes an advisory.

    The fixed version is the strict upper bound (``<X``) of the first
    specifier set that has one. ``<=X`` bounds name a vulnerable version,
    not a fix, and are ignored.

    Args:
        specs: Specifier sets such as ``">=2.0,<2.0.5"``

    Returns:
        Fixed version, or None if no spec gives one
    """
    for spec in specs:
        if not isinstance(spec, str):
            continue
        for constraint in spec.split(","):
            constraint = constraint.strip()
            if constraint.startswith("<") and not constraint.startswith("<="):
                return constraint[1:].strip()
    return None


def parse_feed(
    feed: Dict[str, Any], namespaces: List[Namespace]
) -> List[Vulnerability]:
    """Turn the safety-db JSON document into vulnerabilities.

    Args:
        feed: Decoded ``insecure_full.json``
        namespaces: Namespaces every advisory is applied to

    Returns:
        One vulnerability per CVE, package and namespace
    """
    parser = PipVersionParser()
    seen = set()
    vulnerabilities = []

    for package, advisories in sorted(feed.items()):
        if package.startswith("$") or not isinstance(advisories, list):
            continue

        for advisory in advisories:
            if not isinstance(advisory, dict):
                continue
            cve_ids = parse_cve_ids(advisory.get("cve"))
            if not cve_ids:
                continue

            specs = advisory.get("specs") or [advisory.get("v", "")]
            fixed = parse_fixed_version(specs)
            if fixed is None or not parser.valid(fixed):
                logger.warning(
                    f"No usable fixed version for {package} ({advisory.get('id')}). skipping"
                )
                continue

            for cve in cve_ids:
                for namespace in namespaces:
                    key: Tuple[str, str, str] = (cve, package, namespace.name)
                    if key in seen:
                        continue
                    seen.add(key)
                    vulnerabilities.append(
                        Vulnerability(
                            name=cve,
                            namespace=namespace,
                            fixed_in=[
                                FeatureVersion(
                                    feature=Feature(name=package, namespace=namespace),
                                    version=fixed,
                                    version_format=PARSER_NAME,
                                )
                            ],
                            severity=Severity.UNKNOWN,
                            link=CVE_URL_PREFIX + cve,
                            description=advisory.get("advisory") or "",
                        )
                    )

    return vulnerabilities


class SafetyDBUpdater(Updater):
    """Updater backed by the safety-db git repository.

    Args:
        repository_url: Git URL of the feed
        namespaces: Namespace names advisories are applied to
        work_dir: Parent directory of the temporary clone
        git_timeout: Time limit for each git command, in seconds
        git: git executable
    """

    def __init__(
        self,
        repository_url: str = DEFAULT_SAFETY_DB_URL,
        namespaces: Optional[List[str]] = None,
        work_dir: Optional[str] = None,
        git_timeout: int = 300,
        git: str = "git",
    ):
        self.repository_url = repository_url
        names = namespaces if namespaces is not None else DEFAULT_PYTHON_NAMESPACES
        self.namespaces = [Namespace.parse(name, PARSER_NAME) for name in names]
        self.work_dir = work_dir
        self.git_timeout = git_timeout
        self.git = git

    @property
    def name(self) -> str:
        return "python"

    def update(self, datastore: Datastore) -> UpdateResponse:
        with tempfile.TemporaryDirectory(prefix="safety-db-", dir=self.work_dir) as repo_dir:
            repo_path = Path(repo_dir)
            commit = self._pull(repo_path)

            response = UpdateResponse(flag_name=FLAG_NAME, flag_value=commit)
            if datastore.get_key_value(FLAG_NAME) == commit:
                logger.info(f"safety-db unchanged at {commit}")
                return response

            feed = self._load_feed(repo_path / FEED_FILE)

        response.vulnerabilities = parse_feed(feed, self.namespaces)
        logger.info(
            f"safety-db at {commit}: {len(response.vulnerabilities)} vulnerabilities"
        )
        return response

    def _pull(self, repo_path: Path) -> str:
        self._git(["clone", "--depth", "1", self.repository_url, "."], repo_path)
        return self._git(["rev-parse", "HEAD"], repo_path).strip()

    def _git(self, args: List[str], cwd: Path) -> str:
        try:
            result = subprocess.run(
                [self.git, *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.git_timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"git {args[0]} failed: {e.stderr.strip()}")
            raise FeedUnavailableError(f"could not fetch {self.repository_url}") from e
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error(f"git {args[0]} failed: {e}")
            raise FeedUnavailableError(f"could not fetch {self.repository_url}") from e
        return result.stdout

    def _load_feed(self, path: Path) -> Dict[str, Any]:
        try:
            with path.open("r", encoding="utf-8") as f:
                feed = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise FeedUnavailableError(f"could not open {FEED_FILE}: {e}") from e
        if not isinstance(feed, dict):
            raise FeedUnavailableError(f"unexpected layout in {FEED_FILE}")
        return feed
