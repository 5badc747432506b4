"""Per-host compilation: intents to rules to ruleset text."""

import logging
from collections.abc import Iterable

from pydantic import ValidationError

from melt.errors import ErrorCollector, ErrorSeverity, MeltError
from melt.factory import RuleFactory
from melt.formatters import BaseFormatter
from melt.models import HostPolicy, PolicyConfig, Rule

logger = logging.getLogger(__name__)


def compile_host(factory: RuleFactory, host: HostPolicy) -> list[Rule]:
    """Build every intent of a host, in order, within the host's scope.

    Raises:
        MeltError: On any fatal build error; no partial list is returned
    """
    rules: list[Rule] = []
    for index, intent in enumerate(host.rules, start=1):
        result = factory.build_batch(intent, scope=host.scope)
        if result.dropped or result.filtered:
            logger.debug(
                "Intent %d: %d rule(s) kept, %d dropped, %d filtered",
                index,
                len(result.kept),
                result.dropped,
                result.filtered,
            )
        rules.extend(result.kept)
    return rules


def compile_policy(
    config: PolicyConfig,
    factory: RuleFactory,
    formatter: BaseFormatter,
    error_collector: ErrorCollector | None = None,
    hosts: Iterable[str] | None = None,
) -> dict[str, str]:
    """Compile the rulesets of a policy.

    A host failing to compile is reported to ``error_collector`` and left out
    of the result; the other hosts are still compiled. Without a collector
    the first failure propagates.

    Args:
        config: Validated policy
        factory: Rule factory used for every host
        formatter: Backend formatter
        error_collector: Optional collector for per-host failures
        hosts: Restrict compilation to these hosts (default: all, file order)

    Returns:
        Mapping of host name to ruleset text
    """
    selected = list(config.hosts) if hosts is None else list(hosts)
    rulesets: dict[str, str] = {}

    for name in selected:
        host = config.hosts.get(name)
        if host is None:
            if error_collector is None:
                raise KeyError(f"Unknown host: {name}")
            error_collector.add_error(host=name, message="Host not defined in policy")
            continue

        logger.info("Compiling %s (%d intents)", name, len(host.rules))
        try:
            rules = compile_host(factory, host)
        except (MeltError, ValidationError) as e:
            if error_collector is None:
                raise
            error_collector.add_error(host=name, message="Ruleset compilation failed", exception=e)
            continue

        if not rules:
            message = "No rules generated; only the default policy applies"
            if error_collector is not None:
                error_collector.add_error(
                    host=name, message=message, severity=ErrorSeverity.WARNING
                )
            else:
                logger.warning("[%s] %s", name, message)

        rulesets[name] = formatter.emit_ruleset(rules, host.policy)
        logger.info("Compiled %s: %d rule(s)", name, len(rules))

    return rulesets
