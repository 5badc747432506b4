"""Rule factory: turns intents into concrete rules.

Building a rule set from an intent happens in three steps:

1. Resolution - host names become address lists through the resolver and
   service names become port numbers through the services table.
2. Expansion - every field holding a list of alternatives is multiplied out
   (cartesian product over EXPANDED_FIELDS), one concrete intent per
   combination.
3. Validation - each combination becomes a Rule. Combinations mixing address
   families are dropped, and rules outside the requested address family
   scope are filtered out.

The factory keeps no state between builds: the address family scope is an
explicit argument, or is carried by a single-use ScopedFactory.
"""

import itertools
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from melt.errors import AddressFamilyConflict, ScopeError, UnknownServiceError
from melt.models import AddressFamily, Intent, Rule, is_port_range, normalize_family
from melt.resolver import AddressResolver, DnsResolver
from melt.services import ServiceTable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fields multiplied out during expansion, outermost first
EXPANDED_FIELDS: tuple[tuple[str, ...], ...] = (
    ("proto",),
    ("from", "host"),
    ("from", "port"),
    ("to", "host"),
    ("to", "port"),
    ("nat_to",),
    ("rdr_to", "host"),
    ("rdr_to", "port"),
)

ENDPOINTS = ("from", "to", "rdr_to")


@dataclass
class BuildResult:
    """Outcome of building one intent.

    Attributes:
        kept: Rules in expansion order
        dropped: Combinations rejected for mixing address families
        filtered: Rules removed because their family is outside the scope
    """

    kept: list[Rule] = field(default_factory=list)
    dropped: int = 0
    filtered: int = 0

    @property
    def attempts(self) -> int:
        """Number of rule constructions attempted."""
        return len(self.kept) + self.dropped + self.filtered


def _alternatives(value: Any) -> list[Any]:
    """Return the alternatives held by a field; nested lists contribute their leaves."""
    if not isinstance(value, list):
        return [value]
    leaves: list[Any] = []
    for item in value:
        leaves.extend(_alternatives(item))
    return leaves


def _get(options: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    value: Any = options
    for key in path:
        value = value[key]
    return value


def expand(options: Mapping[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield one concrete option mapping per combination of alternatives.

    The number of mappings is the product of the alternative counts of the
    fields in EXPANDED_FIELDS; the last field varies fastest.
    """
    choices = [_alternatives(_get(options, path)) for path in EXPANDED_FIELDS]
    for combination in itertools.product(*choices):
        concrete = {
            key: dict(value) if isinstance(value, Mapping) else value
            for key, value in options.items()
        }
        for path, value in zip(EXPANDED_FIELDS, combination):
            *parents, leaf = path
            target = concrete
            for key in parents:
                target = target[key]
            target[leaf] = value
        yield concrete


def _in_scope(af: AddressFamily | None, scope: AddressFamily | None) -> bool:
    return scope is None or af is None or af == scope


class RuleFactory:
    """Build Rule instances from intents.

    Args:
        resolver: Host name resolver (defaults to DNS)
        services: Services table or name-to-port mapping (defaults to
            /etc/services, loaded once here)
    """

    def __init__(
        self,
        resolver: AddressResolver | None = None,
        services: ServiceTable | Mapping[str, int] | None = None,
    ) -> None:
        self.resolver = resolver if resolver is not None else DnsResolver()
        if services is None:
            services = ServiceTable.from_file()
        elif not isinstance(services, ServiceTable):
            services = ServiceTable(services)
        self.services = services

    def build(
        self,
        intent: Intent | Mapping[str, Any] | None,
        scope: AddressFamily | str | None = None,
    ) -> list[Rule]:
        """Return the rules described by ``intent``.

        Args:
            intent: Intent model or mapping; an empty intent yields no rules
            scope: Keep only rules of this address family (or of no family)

        Raises:
            UnknownServiceError: If a port names an unknown service
            ResolutionError: If a host name cannot be resolved
        """
        return self.build_batch(intent, scope).kept

    def build_batch(
        self,
        intent: Intent | Mapping[str, Any] | None,
        scope: AddressFamily | str | None = None,
    ) -> BuildResult:
        """Like build(), also reporting dropped and filtered combinations."""
        result = BuildResult()
        if not intent:
            return result
        if isinstance(intent, Mapping):
            intent = Intent.model_validate(intent)
        if intent.is_empty():
            return result

        af_scope = normalize_family(scope)
        options = self._resolve(intent)

        for combination in expand(options):
            try:
                rule = Rule.model_validate(combination)
            except AddressFamilyConflict as e:
                logger.debug("Dropping rule instance: %s", e)
                result.dropped += 1
                continue

            if _in_scope(rule.af, af_scope):
                result.kept.append(rule)
            else:
                logger.debug("Filtering %s rule outside %s scope", rule.af, af_scope)
                result.filtered += 1

        return result

    def with_family(
        self,
        af: AddressFamily | str,
        body: Callable[["ScopedFactory"], T] | None = None,
    ) -> "ScopedFactory | T":
        """Restrict builds to one address family.

        Without ``body``, return a ScopedFactory to use as a context manager.
        With ``body``, call it with the active scope and return its result.
        """
        scoped = ScopedFactory(self, af)
        if body is None:
            return scoped
        with scoped:
            return body(scoped)

    def ipv4(self) -> "ScopedFactory":
        """Limit the scope of a set of rules to IPv4 only."""
        return ScopedFactory(self, AddressFamily.INET)

    def ipv6(self) -> "ScopedFactory":
        """Limit the scope of a set of rules to IPv6 only."""
        return ScopedFactory(self, AddressFamily.INET6)

    def _resolve(self, intent: Intent) -> dict[str, Any]:
        """Resolve host names and service names of an intent."""
        options = intent.model_dump(by_alias=True)
        for endpoint in ENDPOINTS:
            options[endpoint]["host"] = self._host_lookup(options[endpoint]["host"])
            options[endpoint]["port"] = self._port_lookup(options[endpoint]["port"])
        options["nat_to"] = self._host_lookup(options["nat_to"])
        return options

    def _host_lookup(self, host: Any) -> Any:
        if host is None:
            return None
        if isinstance(host, str):
            return self.resolver.resolve(host)
        if isinstance(host, list):
            addresses: list[Any] = []
            for item in host:
                resolved = self._host_lookup(item)
                if isinstance(resolved, list):
                    addresses.extend(resolved)
                else:
                    addresses.append(resolved)
            return addresses
        return host

    def _port_lookup(self, port: Any) -> Any:
        if port is None:
            return None
        if isinstance(port, list):
            return [self._port_lookup(item) for item in port]
        if isinstance(port, int) or is_port_range(port):
            return port
        if port.isdigit():
            return int(port)

        number = self.services.lookup(port)
        if number is None:
            raise UnknownServiceError(port)
        return number


class ScopedFactory:
    """A RuleFactory bound to one address family.

    Usable once, as a context manager. Scopes do not nest: requesting another
    scope from this one, or entering it a second time, raises ScopeError.

    The check is per ScopedFactory object. The underlying RuleFactory keeps no
    scope state, so two scopes taken separately from the same RuleFactory
    (``factory.ipv6()`` inside ``with factory.ipv4():``) are independent and
    do not raise; each applies only to builds made through it.
    """

    def __init__(self, factory: RuleFactory, af: AddressFamily | str) -> None:
        self.factory = factory
        self.af = AddressFamily(af)
        self._state = "new"

    def __enter__(self) -> "ScopedFactory":
        if self._state != "new":
            raise ScopeError("Address family already scoped")
        self._state = "active"
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._state = "closed"

    def build(
        self,
        intent: Intent | Mapping[str, Any] | None,
        scope: AddressFamily | str | None = None,
    ) -> list[Rule]:
        """Return the rules described by ``intent``, within this scope's family.

        Args:
            intent: Intent model or mapping; an empty intent yields no rules
            scope: Must be left unset; the scope is already fixed

        Raises:
            ScopeError: If ``scope`` is given or the scope is closed
            UnknownServiceError: If a port names an unknown service
            ResolutionError: If a host name cannot be resolved
        """
        return self.build_batch(intent, scope).kept

    def build_batch(
        self,
        intent: Intent | Mapping[str, Any] | None,
        scope: AddressFamily | str | None = None,
    ) -> BuildResult:
        """Like build(), also reporting dropped and filtered combinations."""
        if scope is not None:
            raise ScopeError("Address family already scoped")
        if self._state == "closed":
            raise ScopeError(f"Address family scope {self.af.value} is closed")
        return self.factory.build_batch(intent, scope=self.af)

    def with_family(
        self,
        af: AddressFamily | str,
        body: Callable[["ScopedFactory"], T] | None = None,
    ) -> "ScopedFactory | T":
        """Always raises: scopes do not nest.

        Raises:
            ScopeError: Always
        """
        raise ScopeError("Address family already scoped")

    def ipv4(self) -> "ScopedFactory":
        """Always raises: scopes do not nest.

        Raises:
            ScopeError: Always
        """
        raise ScopeError("Address family already scoped")

    def ipv6(self) -> "ScopedFactory":
        """Always raises: scopes do not nest.

        Raises:
            ScopeError: Always
        """
        raise ScopeError("Address family already scoped")
