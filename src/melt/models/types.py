"""Shared value types for intents and rules."""

import re
from enum import Enum
from ipaddress import IPv4Interface, IPv6Interface, ip_interface
from typing import Annotated, Any

from pydantic import Field

PORT_RANGE_PATTERN = r"^\d+:\d+$"
PORT_RANGE_RE = re.compile(PORT_RANGE_PATTERN)

Address = IPv4Interface | IPv6Interface

# A single concrete port: a number or a "lo:hi" range
Port = Annotated[int, Field(ge=0, le=65535)] | Annotated[str, Field(pattern=PORT_RANGE_PATTERN)]

# Intent-side values, before resolution
HostValue = Address | str
HostSpec = HostValue | list[HostValue] | None
PortSpec = int | str | list[Any] | None


class AddressFamily(str, Enum):
    """Address family of a rule or of a build scope."""

    INET = "inet"
    """IPv4"""

    INET6 = "inet6"
    """IPv6"""

    ANY = "any"
    """No family constraint; equivalent to leaving the family unset."""

    @classmethod
    def of(cls, address: Address) -> "AddressFamily":
        """Return the family of a resolved address."""
        return cls.INET6 if address.version == 6 else cls.INET


class Action(str, Enum):
    """Filtering decision of a rule."""

    PASS = "pass"
    BLOCK = "block"


class Direction(str, Enum):
    """Traffic direction relative to the protected host."""

    IN = "in"
    OUT = "out"
    FWD = "fwd"


def parse_address(value: str) -> Address:
    """Parse a literal address or CIDR (``192.168.0.0/24``, ``::1``).

    Raises:
        ValueError: If the value is not an IP address or network
    """
    return ip_interface(value.strip())


def is_port_range(value: Any) -> bool:
    """Return True if value is a textual ``lo:hi`` port range."""
    return isinstance(value, str) and PORT_RANGE_RE.match(value) is not None


def normalize_family(af: AddressFamily | str | None) -> AddressFamily | None:
    """Map ``any`` and absent families to None."""
    if af is None:
        return None
    af = AddressFamily(af)
    return None if af is AddressFamily.ANY else af
