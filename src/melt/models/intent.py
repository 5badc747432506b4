"""Intent models: firewall policy as written by the user, before resolution."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from melt.models.types import Action, AddressFamily, Direction, HostSpec, PortSpec


class Endpoint(BaseModel):
    """Source, destination or redirect endpoint of an intent.

    Hosts may be names, literal addresses or lists of those. Ports may be
    numbers, ``lo:hi`` ranges, service names or (nested) lists of those.
    """

    model_config = ConfigDict(extra="forbid")

    host: HostSpec = None
    port: PortSpec = None


class Intent(BaseModel):
    """A firewall intent, possibly holding lists of alternatives.

    ``from``, ``return`` and ``in`` are Python keywords; the fields are named
    ``from_``, ``return_`` and ``in_`` and accept the keyword names as aliases.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    action: Annotated[Action | None, Field(None, description="pass or block")]
    return_: Annotated[bool, Field(False, alias="return", description="Return to caller chain")]
    dir: Annotated[Direction | None, Field(None, description="in, out or fwd")]
    af: Annotated[AddressFamily | None, Field(None, description="Requested address family")]
    proto: Annotated[
        str | list[str] | None, Field(None, description="Protocol name or alternatives")
    ]
    on: Annotated[str | None, Field(None, description="Interface, '!' prefix negates")]
    in_: Annotated[str | None, Field(None, alias="in", description="Inbound interface (fwd)")]
    out: Annotated[str | None, Field(None, description="Outbound interface (fwd)")]
    from_: Annotated[Endpoint, Field(default_factory=Endpoint, alias="from")]
    to: Annotated[Endpoint, Field(default_factory=Endpoint)]
    nat_to: Annotated[HostSpec, Field(None, description="Masquerade address")]
    rdr_to: Annotated[Endpoint, Field(default_factory=Endpoint)]

    def is_empty(self) -> bool:
        """Return True if no field was supplied."""
        return not self.model_fields_set
