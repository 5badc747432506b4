"""Backend syntax formatters.

Each formatter renders rules and rulesets for one firewall backend. Only
netfilter (iptables-restore) is provided.
"""

from melt.formatters.base import BaseFormatter
from melt.formatters.netfilter import NetfilterFormatter, format_address

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "netfilter": NetfilterFormatter,
}

__all__ = [
    "BaseFormatter",
    "FORMATTERS",
    "NetfilterFormatter",
    "format_address",
]
