"""Policy file models: per-host intent lists and static names."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from melt.models.intent import Intent
from melt.models.types import Action, AddressFamily, parse_address


class HostPolicy(BaseModel):
    """Ordered intents and default policy of one protected host."""

    model_config = ConfigDict(extra="forbid")

    policy: Annotated[Action, Field(Action.BLOCK, description="Default chain policy")]
    scope: Annotated[
        AddressFamily | None, Field(None, description="Restrict rules to one address family")
    ]
    rules: Annotated[list[Intent], Field(default_factory=list, description="Intents, in order")]


class PolicyConfig(BaseModel):
    """Complete policy file.

    ``names`` provides static name resolution consulted before DNS.
    """

    model_config = ConfigDict(extra="forbid")

    names: Annotated[
        dict[str, list[str]], Field(default_factory=dict, description="Static host names")
    ]
    hosts: Annotated[
        dict[str, HostPolicy], Field(default_factory=dict, description="Per-host policies")
    ]

    @field_validator("names")
    @classmethod
    def validate_names(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """Validate that every static name maps to literal addresses."""
        for name, addresses in v.items():
            if not addresses:
                raise ValueError(f"Name '{name}' has no addresses")
            for address in addresses:
                try:
                    parse_address(address)
                except ValueError as e:
                    raise ValueError(f"Invalid address '{address}' for name '{name}'") from e
        return v
