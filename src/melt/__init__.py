"""Compile declarative firewall intent into packet filter rulesets."""

from melt.errors import (
    AddressFamilyConflict,
    MeltError,
    ResolutionError,
    ScopeError,
    UnknownServiceError,
)
from melt.factory import BuildResult, RuleFactory, ScopedFactory
from melt.formatters import NetfilterFormatter
from melt.models import AddressFamily, Intent, Rule
from melt.parser import load_policy
from melt.resolver import DnsResolver, StaticResolver
from melt.services import ServiceTable
from melt.version import __version__

__all__ = [
    "AddressFamily",
    "AddressFamilyConflict",
    "BuildResult",
    "DnsResolver",
    "Intent",
    "MeltError",
    "NetfilterFormatter",
    "ResolutionError",
    "Rule",
    "RuleFactory",
    "ScopeError",
    "ScopedFactory",
    "ServiceTable",
    "StaticResolver",
    "UnknownServiceError",
    "load_policy",
    "__version__",
]
