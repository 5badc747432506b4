"""Concrete, validated rule model."""

from collections.abc import Mapping
from ipaddress import IPv4Interface, IPv6Interface
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from melt.errors import AddressFamilyConflict
from melt.models.types import (
    Action,
    Address,
    AddressFamily,
    Direction,
    Port,
    normalize_family,
    parse_address,
)


class RuleEndpoint(BaseModel):
    """A single resolved host and port."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: Address | None = None
    port: Port | None = None


class Rule(BaseModel):
    """One concrete filtering decision.

    Every host and port holds a single value. ``af`` is the effective address
    family: the requested one, else the one implied by the rule's addresses.
    Mixing families raises AddressFamilyConflict during construction.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    action: Action | None = None
    return_: Annotated[bool, Field(False, alias="return")]
    dir: Direction
    af: AddressFamily | None = None
    proto: str | None = None
    on: str | None = None
    in_: Annotated[str | None, Field(None, alias="in")]
    out: str | None = None
    from_: Annotated[RuleEndpoint, Field(default_factory=RuleEndpoint, alias="from")]
    to: Annotated[RuleEndpoint, Field(default_factory=RuleEndpoint)]
    nat_to: Address | None = None
    rdr_to: Annotated[RuleEndpoint, Field(default_factory=RuleEndpoint)]

    @model_validator(mode="before")
    @classmethod
    def resolve_address_family(cls, data: Any) -> Any:
        """Compute the effective address family, rejecting mixed families."""
        if not isinstance(data, Mapping):
            return data

        families: list[AddressFamily] = []
        requested = normalize_family(data.get("af"))
        if requested is not None:
            families.append(requested)

        hosts = [
            _endpoint_host(_lookup(data, "from", "from_")),
            _endpoint_host(data.get("to")),
            data.get("nat_to"),
            _endpoint_host(data.get("rdr_to")),
        ]
        for host in hosts:
            family = _host_family(host)
            if family is not None and family not in families:
                families.append(family)

        if len(families) > 1:
            raise AddressFamilyConflict(
                "rule mixes address families: " + ", ".join(f.value for f in families)
            )

        data = dict(data)
        data["af"] = families[0] if families else None
        return data

    @model_validator(mode="after")
    def validate_target(self) -> "Rule":
        """Ensure the rule has something to jump to."""
        if self.action is None and not self.return_ and not self.is_nat:
            raise ValueError("action is required unless the rule returns or translates")
        if self.rdr_to.port is not None and self.rdr_to.host is None:
            raise ValueError("rdr_to.port requires rdr_to.host")
        return self

    @property
    def is_nat(self) -> bool:
        """True if the rule belongs to the nat table."""
        return self.rdr_to.host is not None or self.nat_to is not None


def _lookup(data: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return None


def _endpoint_host(endpoint: Any) -> Any:
    if endpoint is None:
        return None
    if isinstance(endpoint, Mapping):
        return endpoint.get("host")
    return getattr(endpoint, "host", None)


def _host_family(host: Any) -> AddressFamily | None:
    if isinstance(host, (IPv4Interface, IPv6Interface)):
        return AddressFamily.of(host)
    if isinstance(host, str):
        try:
            return AddressFamily.of(parse_address(host))
        except ValueError:
            # Left for field validation to report
            return None
    return None
