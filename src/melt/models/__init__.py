"""Pydantic models for melt.

Intents describe policy as written, rules are the concrete result of
resolving and expanding intents, and the policy models describe the input
file handed to the compiler.
"""

from melt.models.intent import Endpoint, Intent
from melt.models.policy import HostPolicy, PolicyConfig
from melt.models.rule import Rule, RuleEndpoint
from melt.models.types import (
    Action,
    Address,
    AddressFamily,
    Direction,
    HostSpec,
    Port,
    PortSpec,
    is_port_range,
    normalize_family,
    parse_address,
)

__all__ = [
    # types
    "Action",
    "Address",
    "AddressFamily",
    "Direction",
    "HostSpec",
    "Port",
    "PortSpec",
    "is_port_range",
    "normalize_family",
    "parse_address",
    # intent
    "Endpoint",
    "Intent",
    # rule
    "Rule",
    "RuleEndpoint",
    # policy
    "HostPolicy",
    "PolicyConfig",
]
