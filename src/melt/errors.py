"""Exceptions and per-host error collection for melt.

Fatal conditions (scope misuse, unknown services, resolution failures) abort
the compilation of the host being processed. The collector gathers those
failures so the remaining hosts of a policy can still be compiled and the
problems reported together at the end.
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class MeltError(Exception):
    """Base class for all melt errors."""


class ScopeError(MeltError):
    """Raised when an address family scope is entered while one is active."""


class UnknownServiceError(MeltError):
    """Raised when a port name is not found in the services table."""

    def __init__(self, service: str) -> None:
        super().__init__(f'unknown service "{service}"')
        self.service = service


class ResolutionError(MeltError):
    """Raised when a host name cannot be resolved to addresses."""

    def __init__(self, host: str, reason: str | None = None) -> None:
        message = f'cannot resolve "{host}"'
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.host = host


class AddressFamilyConflict(MeltError):
    """Raised when a rule mixes addresses of different families.

    Must not derive from ValueError: raised inside a model validator it then
    propagates out of pydantic unchanged and the factory drops the combination.
    """


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    WARNING = "warning"  # Reported, doesn't affect exit code
    ERROR = "error"  # Host ruleset was not produced


@dataclass
class CompileError:
    """An error encountered while compiling a host.

    Attributes:
        host: Name of the host whose ruleset was being compiled
        message: Human-readable error message
        exception: The original exception (if any)
        severity: Error severity level
    """

    host: str
    message: str
    exception: Exception | None = None
    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __str__(self) -> str:
        if self.exception:
            return f"[{self.host}] {self.message}: {self.exception}"
        return f"[{self.host}] {self.message}"


class ErrorCollector:
    """Collects compilation errors for batch reporting."""

    def __init__(self) -> None:
        self.errors: list[CompileError] = []

    def add_error(
        self,
        host: str,
        message: str,
        exception: Exception | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        """Record an error and log it immediately.

        Args:
            host: Host being compiled when the error occurred
            message: Human-readable error message
            exception: Original exception that caused the error
            severity: Error severity level
        """
        error = CompileError(host=host, message=message, exception=exception, severity=severity)
        self.errors.append(error)

        if severity == ErrorSeverity.WARNING:
            logger.warning("%s", error)
        else:
            logger.error("%s", error)

    def has_errors(self) -> bool:
        """Return True if any ERROR-level entry was collected."""
        return any(e.severity == ErrorSeverity.ERROR for e in self.errors)

    def has_warnings(self) -> bool:
        return any(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def get_error_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == ErrorSeverity.ERROR)

    def get_warning_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == ErrorSeverity.WARNING)

    def failed_hosts(self) -> list[str]:
        """Return the hosts with at least one ERROR, in first-failure order."""
        hosts: list[str] = []
        for error in self.errors:
            if error.severity == ErrorSeverity.ERROR and error.host not in hosts:
                hosts.append(error.host)
        return hosts

    def log_summary(self) -> None:
        """Log a summary of all collected errors, grouped by host."""
        if not self.errors:
            logger.info("Compilation completed with no errors")
            return

        error_count = self.get_error_count()
        warning_count = self.get_warning_count()

        logger.error("=" * 80)
        logger.error("COMPILATION ERROR SUMMARY")
        logger.error("=" * 80)

        errors_by_host: dict[str, list[CompileError]] = {}
        for error in self.errors:
            errors_by_host.setdefault(error.host, []).append(error)

        for host, host_errors in sorted(errors_by_host.items()):
            logger.error("Host: %s (%d issues)", host, len(host_errors))
            for error in host_errors:
                level_str = error.severity.value.upper()
                if error.exception:
                    logger.error("  [%s] %s: %s", level_str, error.message, error.exception)
                else:
                    logger.error("  [%s] %s", level_str, error.message)

        logger.error("=" * 80)

        if error_count > 0:
            logger.error(
                "Compilation completed with %d error(s) and %d warning(s)",
                error_count,
                warning_count,
            )
            logger.error("Rulesets of failed hosts were not written.")
        else:
            logger.warning("Compilation completed with %d warning(s)", warning_count)
