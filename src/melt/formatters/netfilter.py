"""Netfilter formatter.

Renders rules in iptables-restore syntax. Rule lines follow a fixed field
order::

    -A <CHAIN> [! -i <on>] [-i|-o <on>] [-p <proto>]
       [-s <from.host>] [--sport <from.port>]
       [-d <to.host>] [--dport <to.port>]
       -j <TARGET> [<target-args>]

Rules with a redirect (``rdr_to``) or masquerade (``nat_to``) target live in
the nat table, everything else in the filter table.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from melt.formatters.base import BaseFormatter
from melt.models import Action, Address, Direction, Rule
from melt.version import __version__

logger = logging.getLogger(__name__)

GENERATOR = "melt"

NAT_CHAINS = ("PREROUTING", "INPUT", "OUTPUT", "POSTROUTING")
FILTER_CHAINS = ("INPUT", "FORWARD", "OUTPUT")

DIRECTION_CHAINS = {
    Direction.IN: "INPUT",
    Direction.OUT: "OUTPUT",
    Direction.FWD: "FORWARD",
}

STATEFUL_ACCEPT = "-m state --state ESTABLISHED,RELATED -j ACCEPT"


def format_address(address: Address) -> str:
    """Render an address, without prefix length when it is a single host."""
    if address.network.prefixlen == address.max_prefixlen:
        return str(address.ip)
    return address.with_prefixlen


class NetfilterFormatter(BaseFormatter):
    """Generate iptables-restore rule lines and rulesets."""

    def emit_rule(self, rule: Rule) -> str:
        """Render one rule as an ``-A`` line."""
        parts = ["-A", self.chain(rule)]
        parts.extend(self._interfaces(rule))

        if rule.proto:
            parts.extend(["-p", rule.proto])

        if rule.from_.host is not None:
            parts.extend(["-s", format_address(rule.from_.host)])
        if rule.from_.port is not None:
            parts.extend(["--sport", str(rule.from_.port)])

        if rule.to.host is not None:
            parts.extend(["-d", format_address(rule.to.host)])
        if rule.to.port is not None:
            parts.extend(["--dport", str(rule.to.port)])

        parts.append("-j")
        parts.extend(self._target(rule))
        return " ".join(parts)

    def emit_ruleset(
        self,
        rules: Sequence[Rule],
        default_policy: Action | str,
        now: datetime | None = None,
    ) -> str:
        """Render the nat (when needed) and filter tables for one host."""
        if now is None:
            now = datetime.now()

        nat_rules = [rule for rule in rules if rule.is_nat]
        filter_rules = [rule for rule in rules if not rule.is_nat]
        logger.debug(
            "Emitting ruleset: %d nat rule(s), %d filter rule(s)",
            len(nat_rules),
            len(filter_rules),
        )

        lines = [f"# Generated by {GENERATOR} v{__version__} on {now.ctime()}"]

        if nat_rules:
            lines.append("*nat")
            lines.extend(f":{chain} ACCEPT [0:0]" for chain in NAT_CHAINS)
            for chain in NAT_CHAINS:
                lines.extend(
                    self.emit_rule(rule) for rule in nat_rules if self.chain(rule) == chain
                )
            lines.append("COMMIT")

        policy = "DROP" if default_policy == Action.BLOCK else "ACCEPT"
        lines.append("*filter")
        lines.extend(f":{chain} {policy} [0:0]" for chain in FILTER_CHAINS)
        for chain in FILTER_CHAINS:
            chain_rules = [rule for rule in filter_rules if self.chain(rule) == chain]
            if not chain_rules:
                continue
            # Replies to accepted traffic come first in every used chain
            lines.append(f"-A {chain} {STATEFUL_ACCEPT}")
            lines.extend(self.emit_rule(rule) for rule in chain_rules)
        lines.append("COMMIT")

        return "\n".join(lines) + "\n"

    def chain(self, rule: Rule) -> str:
        """Return the chain a rule is appended to."""
        if rule.rdr_to.host is not None:
            return "PREROUTING"
        if rule.nat_to is not None:
            return "POSTROUTING"
        return DIRECTION_CHAINS[rule.dir]

    def _interfaces(self, rule: Rule) -> list[str]:
        """Interface match arguments.

        Forward rules match their ``in``/``out`` interfaces. Other rules match
        ``on`` with ``-i`` inbound and ``-o`` outbound. A leading ``!`` always
        renders ``! -i <name>``, whatever the direction.
        """
        if rule.dir is Direction.FWD and not rule.is_nat:
            parts: list[str] = []
            if rule.in_:
                parts.extend(["-i", rule.in_])
            if rule.out:
                parts.extend(["-o", rule.out])
            return parts

        if not rule.on:
            return []

        # Negation only exists for the inbound flag
        if rule.on.startswith("!"):
            return ["!", "-i", rule.on[1:]]

        if rule.rdr_to.host is not None:
            flag = "-i"
        elif rule.nat_to is not None or rule.dir is Direction.OUT:
            flag = "-o"
        else:
            flag = "-i"
        return [flag, rule.on]

    def _target(self, rule: Rule) -> list[str]:
        """Jump target and its arguments, in priority order."""
        if rule.return_:
            return ["RETURN"]

        if rule.rdr_to.host is not None:
            host = rule.rdr_to.host
            port = rule.rdr_to.port
            if host.ip.is_loopback:
                if port is None:
                    return ["REDIRECT"]
                return ["REDIRECT", "--to-port", str(port)]

            destination = format_address(host)
            if port is not None and port != rule.to.port:
                if host.version == 6:
                    destination = f"[{destination}]"
                destination = f"{destination}:{port}"
            return ["DNAT", "--to-destination", destination]

        if rule.nat_to is not None:
            # Masquerade uses the outgoing interface address, nat_to is not rendered
            return ["MASQUERADE"]

        return ["ACCEPT"] if rule.action is Action.PASS else ["DROP"]
