"""Base classes for vulnerability source updaters.

An updater fetches a remote feed, compares the feed's fingerprint with the
one stored in the datastore and, when it changed, turns the feed into
Vulnerability records. Persisting the records and the new fingerprint is
done by run_updaters() once an update has succeeded.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from ..common.logger import get_logger
from ..models import Vulnerability

logger = get_logger("vulnsrc")


class Datastore(Protocol):
    """Storage operations used by updaters."""

    def get_key_value(self, key: str) -> Optional[str]: ...

    def set_key_value(self, key: str, value: str) -> None: ...

    def insert_vulnerabilities(self, vulnerabilities: List[Vulnerability]) -> None: ...


@dataclass
class UpdateResponse:
    """Result of one updater run."""

    flag_name: str = ""
    flag_value: str = ""
    vulnerabilities: List[Vulnerability] = field(default_factory=list)


class Updater(ABC):
    """Abstract base class for vulnerability source updaters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the updater name (e.g. 'python')."""
        pass

    @abstractmethod
    def update(self, datastore: Datastore) -> UpdateResponse:
        """Fetch the feed and build vulnerabilities if it changed.

        Args:
            datastore: Datastore holding the last applied fingerprint

        Returns:
            UpdateResponse; its vulnerability list is empty when the feed
            fingerprint is unchanged

        Raises:
            FeedUnavailableError: If the feed cannot be fetched or opened
        """
        pass


def run_updaters(
    datastore: Datastore, updaters: Dict[str, Updater]
) -> Dict[str, UpdateResponse]:
    """Run updaters and persist what they produced.

    Vulnerabilities without any fixed-in entry are dropped. The fingerprint
    is written only after the vulnerabilities were stored, and only when it
    differs from the stored one.

    Args:
        datastore: Datastore to read fingerprints from and write results to
        updaters: Updaters by name

    Returns:
        Responses by updater name

    Raises:
        FeedUnavailableError: If an updater cannot reach its feed
    """
    responses = {}
    for name, updater in updaters.items():
        logger.info(f"Running updater: {name}")
        response = updater.update(datastore)

        valid = [v for v in response.vulnerabilities if v.is_valid()]
        dropped = len(response.vulnerabilities) - len(valid)
        if dropped:
            logger.warning(f"{name}: dropped {dropped} vulnerabilities without fixed-in data")
        response.vulnerabilities = valid

        if valid:
            datastore.insert_vulnerabilities(valid)
        if response.flag_name and response.flag_value:
            if datastore.get_key_value(response.flag_name) != response.flag_value:
                datastore.set_key_value(response.flag_name, response.flag_value)

        logger.info(f"{name}: {len(valid)} vulnerabilities updated")
        responses[name] = response
    return responses
