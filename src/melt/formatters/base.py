"""Base formatter class for firewall backends."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from melt.models import Action, Rule


class BaseFormatter(ABC):
    """Base class for backend syntax formatters.

    A formatter renders a single Rule to one line of backend syntax and a
    host's ordered rules plus default policy to a complete configuration.
    Formatters hold no state between calls.
    """

    @abstractmethod
    def emit_rule(self, rule: Rule) -> str:
        """Render one rule.

        Returns:
            A single line of backend syntax, without trailing newline
        """
        pass

    @abstractmethod
    def emit_ruleset(
        self,
        rules: Sequence[Rule],
        default_policy: Action | str,
        now: datetime | None = None,
    ) -> str:
        """Render a complete ruleset.

        Args:
            rules: Rules of one host, in order
            default_policy: Policy applied to packets matching no rule
            now: Generation time for the header (defaults to the current time)

        Returns:
            Configuration text, newline terminated
        """
        pass
