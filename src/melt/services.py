"""Service name to port lookup table, read from /etc/services."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULT_SERVICES_PATH = "/etc/services"


class ServiceTable(Mapping[str, int]):
    """Read-only mapping of service names (and aliases) to port numbers.

    The table is filled once at construction and never changes afterwards.
    """

    def __init__(self, services: Mapping[str, int] | None = None) -> None:
        self._services: Mapping[str, int] = MappingProxyType(dict(services or {}))

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "ServiceTable":
        """Parse services(5) records.

        Each record reads ``name port[/proto] [aliases...] [# comment]``.
        Lines with fewer than two fields are skipped. The name and every
        alias map to the port; later records overwrite earlier ones.
        """
        services: dict[str, int] = {}
        for lineno, line in enumerate(lines, start=1):
            pieces = line.split("#", 1)[0].split()
            if len(pieces) < 2:
                continue

            port_field = pieces.pop(1)
            try:
                port = int(port_field.split("/", 1)[0])
            except ValueError:
                logger.debug("Skipping services line %d: bad port %r", lineno, port_field)
                continue

            for name in pieces:
                services[name] = port

        return cls(services)

    @classmethod
    def from_file(cls, path: str | Path = DEFAULT_SERVICES_PATH) -> "ServiceTable":
        """Load the table from a services file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        with path.open(encoding="utf-8", errors="replace") as f:
            table = cls.from_lines(f)
        logger.debug("Loaded %d service names from %s", len(table), path)
        return table

    def lookup(self, name: str) -> int | None:
        """Return the port of ``name``, or None if unknown."""
        return self._services.get(name)

    def __getitem__(self, name: str) -> int:
        return self._services[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._services)

    def __len__(self) -> int:
        return len(self._services)
