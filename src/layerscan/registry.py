"""Generic plugin registry.

A registry maps a case-insensitive name to one implementation. It is used
for image-format extractors, package listers, version-format parsers and
vulnerability updaters. Registration happens once while the registries
are assembled; lookups may then run concurrently from any thread.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Generic, Iterator, List, Optional, TypeVar

from .common.errors import RegistrationError
from .common.logger import get_logger

logger = get_logger("registry")

T = TypeVar("T")


class ReadWriteLock:
    """Lock allowing many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class PluginRegistry(Generic[T]):
    """Registry of named plugin implementations.

    Args:
        kind: Human readable plugin kind used in messages (e.g. "lister")
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._plugins: Dict[str, T] = {}
        self._lock = ReadWriteLock()

    def register(self, name: str, plugin: Optional[T]) -> None:
        """Register a plugin under a name.

        Args:
            name: Plugin name, stored lowercased
            plugin: Plugin implementation

        Raises:
            RegistrationError: If the name is empty, the plugin is None or
                the name is already taken
        """
        if not name:
            raise RegistrationError(
                f"could not register a {self.kind} with an empty name"
            )
        if plugin is None:
            raise RegistrationError(f"could not register a nil {self.kind}")

        name = name.lower()
        with self._lock.write():
            if name in self._plugins:
                raise RegistrationError(
                    f"{self.kind} registered twice for '{name}'"
                )
            self._plugins[name] = plugin
        logger.debug(f"Registered {self.kind}: {name}")

    def unregister(self, name: str) -> None:
        """Remove a plugin. Unknown names are ignored."""
        with self._lock.write():
            self._plugins.pop(name.lower(), None)

    def lookup(self, name: str) -> Optional[T]:
        """Get a plugin by name.

        Returns:
            The plugin, or None if nothing is registered under the name
        """
        with self._lock.read():
            return self._plugins.get(name.lower())

    def all(self) -> Dict[str, T]:
        """Return a copy of the registration table."""
        with self._lock.read():
            return dict(self._plugins)

    def names(self) -> List[str]:
        """List registered plugin names."""
        with self._lock.read():
            return sorted(self._plugins)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._plugins)
