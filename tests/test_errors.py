"""Tests for exceptions and error collection."""

import logging

import pytest

from melt.errors import (
    AddressFamilyConflict,
    CompileError,
    ErrorCollector,
    ErrorSeverity,
    MeltError,
    ResolutionError,
    ScopeError,
    UnknownServiceError,
)


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self) -> None:
        for exc_type in (ScopeError, UnknownServiceError, ResolutionError, AddressFamilyConflict):
            assert issubclass(exc_type, MeltError)

    def test_conflict_is_not_value_error(self) -> None:
        assert not issubclass(AddressFamilyConflict, ValueError)

    def test_unknown_service(self) -> None:
        error = UnknownServiceError("gopherz")
        assert str(error) == 'unknown service "gopherz"'
        assert error.service == "gopherz"

    def test_resolution_error(self) -> None:
        error = ResolutionError("nowhere", "unknown host")
        assert str(error) == 'cannot resolve "nowhere": unknown host'
        assert error.host == "nowhere"
        assert str(ResolutionError("nowhere")) == 'cannot resolve "nowhere"'


class TestCompileError:
    """Tests for CompileError dataclass."""

    def test_error_string_without_exception(self) -> None:
        """Test string representation without exception."""
        error = CompileError(host="gw", message="Host not defined in policy")
        assert str(error) == "[gw] Host not defined in policy"

    def test_error_string_with_exception(self) -> None:
        """Test string representation with exception."""
        error = CompileError(
            host="gw",
            message="Ruleset compilation failed",
            exception=UnknownServiceError("gopherz"),
        )
        assert str(error) == '[gw] Ruleset compilation failed: unknown service "gopherz"'

    def test_default_severity(self) -> None:
        """Test default severity is ERROR."""
        error = CompileError(host="gw", message="Test error message")
        assert error.severity == ErrorSeverity.ERROR


class TestErrorCollector:
    """Tests for ErrorCollector."""

    def test_empty_collector(self) -> None:
        """Test empty collector has no errors."""
        collector = ErrorCollector()
        assert not collector.has_errors()
        assert not collector.has_warnings()
        assert collector.get_error_count() == 0
        assert collector.get_warning_count() == 0
        assert collector.failed_hosts() == []

    def test_add_error(self) -> None:
        collector = ErrorCollector()
        collector.add_error(host="gw", message="Test error")
        assert collector.has_errors()
        assert collector.get_error_count() == 1
        assert collector.errors[0].host == "gw"
        assert collector.errors[0].message == "Test error"

    def test_add_warning(self) -> None:
        """Test warnings are tracked apart from errors."""
        collector = ErrorCollector()
        collector.add_error(host="gw", message="Test warning", severity=ErrorSeverity.WARNING)
        assert not collector.has_errors()
        assert collector.has_warnings()
        assert collector.get_warning_count() == 1
        assert collector.failed_hosts() == []

    def test_failed_hosts_in_first_failure_order(self) -> None:
        collector = ErrorCollector()
        collector.add_error(host="www", message="Error 1")
        collector.add_error(host="gw", message="Error 2")
        collector.add_error(host="www", message="Error 3")
        collector.add_error(host="ns", message="Warning", severity=ErrorSeverity.WARNING)
        assert collector.failed_hosts() == ["www", "gw"]
        assert collector.get_error_count() == 3

    def test_errors_logged_immediately(self, caplog: pytest.LogCaptureFixture) -> None:
        collector = ErrorCollector()
        with caplog.at_level(logging.WARNING):
            collector.add_error(host="gw", message="Broken", exception=ValueError("bad"))
            collector.add_error(host="ns", message="Odd", severity=ErrorSeverity.WARNING)

        records = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert (logging.ERROR, "[gw] Broken: bad") in records
        assert (logging.WARNING, "[ns] Odd") in records

    def test_log_summary_with_errors(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the summary groups issues by host."""
        collector = ErrorCollector()
        collector.add_error(host="www", message="Ruleset compilation failed")
        collector.add_error(host="gw", message="Empty", severity=ErrorSeverity.WARNING)
        caplog.clear()

        with caplog.at_level(logging.INFO):
            collector.log_summary()

        assert "COMPILATION ERROR SUMMARY" in caplog.text
        assert "Host: www (1 issues)" in caplog.text
        assert "Host: gw (1 issues)" in caplog.text
        assert "1 error(s) and 1 warning(s)" in caplog.text
        assert "were not written" in caplog.text

    def test_log_summary_warnings_only(self, caplog: pytest.LogCaptureFixture) -> None:
        collector = ErrorCollector()
        collector.add_error(host="gw", message="Empty", severity=ErrorSeverity.WARNING)
        caplog.clear()

        with caplog.at_level(logging.INFO):
            collector.log_summary()

        assert "Compilation completed with 1 warning(s)" in caplog.text
        assert "were not written" not in caplog.text

    def test_log_summary_no_errors(self, caplog: pytest.LogCaptureFixture) -> None:
        collector = ErrorCollector()
        with caplog.at_level(logging.INFO):
            collector.log_summary()
        assert "Compilation completed with no errors" in caplog.text
