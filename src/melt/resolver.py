"""Host name resolution.

Resolvers turn a host name into the list of addresses it stands for. Each
address is tagged with its family through its IP version. Literal addresses
and networks never hit the network.
"""

import logging
import socket
from collections.abc import Mapping
from typing import Protocol

from melt.errors import ResolutionError
from melt.models.types import Address, parse_address

logger = logging.getLogger(__name__)


class AddressResolver(Protocol):
    """Anything able to resolve a host name to addresses."""

    def resolve(self, name: str) -> list[Address]:
        """Return the addresses of ``name``.

        Raises:
            ResolutionError: If the name cannot be resolved
        """
        ...


def _parse_literal(name: str) -> Address | None:
    try:
        return parse_address(name)
    except ValueError:
        return None


class DnsResolver:
    """Resolve names through the system resolver, caching answers per name."""

    def __init__(self) -> None:
        self._cache: dict[str, list[Address]] = {}

    def resolve(self, name: str) -> list[Address]:
        literal = _parse_literal(name)
        if literal is not None:
            return [literal]

        if name not in self._cache:
            self._cache[name] = self._lookup(name)
        return list(self._cache[name])

    def _lookup(self, name: str) -> list[Address]:
        logger.debug("Resolving %s", name)
        try:
            infos = socket.getaddrinfo(name, None, 0, socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionError(name, str(e)) from e

        addresses: list[Address] = []
        for info in infos:
            # Strip IPv6 zone identifiers (fe80::1%eth0)
            address = parse_address(str(info[4][0]).split("%", 1)[0])
            if address not in addresses:
                addresses.append(address)

        if not addresses:
            raise ResolutionError(name, "no addresses")

        logger.debug("Resolved %s to %s", name, ", ".join(str(a.ip) for a in addresses))
        return addresses


class StaticResolver:
    """Resolve names from a fixed mapping.

    Literal addresses are parsed directly. Names missing from the mapping are
    passed to ``fallback`` when one is given.
    """

    def __init__(
        self,
        names: Mapping[str, list[str] | list[Address]] | None = None,
        fallback: AddressResolver | None = None,
    ) -> None:
        self.names: dict[str, list[Address]] = {}
        for name, addresses in (names or {}).items():
            self.names[name] = [
                a if not isinstance(a, str) else parse_address(a) for a in addresses
            ]
        self.fallback = fallback

    def resolve(self, name: str) -> list[Address]:
        if name in self.names:
            return list(self.names[name])

        literal = _parse_literal(name)
        if literal is not None:
            return [literal]

        if self.fallback is None:
            raise ResolutionError(name, "unknown host")
        return self.fallback.resolve(name)
