"""Command line entry point.

Usage:
    python -m melt POLICY [-H HOST ...] [-o DIR] [--services FILE] [-v]

Arguments:
    POLICY: Path to the JSON policy file
"""

import argparse
import logging
import sys
from pathlib import Path

from melt.compiler import compile_policy
from melt.errors import ErrorCollector
from melt.factory import RuleFactory
from melt.formatters import NetfilterFormatter
from melt.parser import load_policy
from melt.resolver import DnsResolver, StaticResolver
from melt.services import DEFAULT_SERVICES_PATH, ServiceTable
from melt.version import __version__

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_POLICY_ERROR = 1
EXIT_COMPILE_ERROR = 2

RULES_SUFFIX = ".rules"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, use DEBUG level. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def write_rulesets(rulesets: dict[str, str], output_dir: str | None) -> None:
    """Write each ruleset to ``<output_dir>/<host>.rules``, or to stdout."""
    if output_dir is None:
        for host, text in rulesets.items():
            logger.info("Ruleset for %s follows on stdout", host)
            sys.stdout.write(text)
            sys.stdout.flush()
        return

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    for host, text in rulesets.items():
        path = directory / f"{host}{RULES_SUFFIX}"
        path.write_text(text, encoding="utf-8")
        logger.info("Wrote %s", path)


def run(
    policy_path: str,
    hosts: list[str] | None = None,
    output_dir: str | None = None,
    services_path: str = DEFAULT_SERVICES_PATH,
) -> int:
    """Compile a policy file and write the resulting rulesets.

    Hosts that fail to compile are reported and skipped; their rulesets are
    never written.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    error_collector = ErrorCollector()

    try:
        logger.info("Loading policy from %s", policy_path)
        config = load_policy(policy_path)
        services = ServiceTable.from_file(services_path)
    except (OSError, ValueError) as e:
        logger.error("Failed to load policy: %s", e)
        return EXIT_POLICY_ERROR

    factory = RuleFactory(
        resolver=StaticResolver(config.names, fallback=DnsResolver()),
        services=services,
    )
    rulesets = compile_policy(
        config,
        factory,
        NetfilterFormatter(),
        error_collector=error_collector,
        hosts=hosts,
    )
    write_rulesets(rulesets, output_dir)

    if error_collector.has_errors() or error_collector.has_warnings():
        error_collector.log_summary()

    if error_collector.has_errors():
        logger.warning(
            "Compilation failed for: %s", ", ".join(error_collector.failed_hosts())
        )
        return EXIT_COMPILE_ERROR

    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        description="Compile firewall policy into iptables-restore rulesets",
        prog="melt",
    )
    parser.add_argument("policy", help="Path to the JSON policy file")
    parser.add_argument(
        "-H",
        "--host",
        action="append",
        dest="hosts",
        default=None,
        help="Compile only this host (may be repeated)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Write <host>.rules files here instead of printing to stdout",
    )
    parser.add_argument(
        "--services",
        default=DEFAULT_SERVICES_PATH,
        help=f"Services database (default: {DEFAULT_SERVICES_PATH})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    return run(
        policy_path=args.policy,
        hosts=args.hosts,
        output_dir=args.output_dir,
        services_path=args.services,
    )


if __name__ == "__main__":
    sys.exit(main())
