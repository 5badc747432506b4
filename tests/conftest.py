"""Pytest configuration and fixtures for melt tests."""

import pytest

from melt.factory import RuleFactory
from melt.formatters import NetfilterFormatter
from melt.resolver import StaticResolver
from melt.services import ServiceTable

SERVICES = {
    "ssh": 22,
    "domain": 53,
    "http": 80,
    "www": 80,
    "https": 443,
    "squid": 3128,
}

NAMES = {
    "www": ["192.168.1.80"],
    "ns": ["192.168.0.53", "192.168.1.53"],
    "dual": ["192.0.2.10", "2001:db8::10"],
    "v6only": ["2001:db8::53"],
}


@pytest.fixture
def services() -> ServiceTable:
    """Small services table."""
    return ServiceTable(SERVICES)


@pytest.fixture
def resolver() -> StaticResolver:
    """Resolver answering from a fixed set of names, without DNS."""
    return StaticResolver(NAMES)


@pytest.fixture
def factory(resolver: StaticResolver, services: ServiceTable) -> RuleFactory:
    """Rule factory wired to the static resolver and services."""
    return RuleFactory(resolver=resolver, services=services)


@pytest.fixture
def formatter() -> NetfilterFormatter:
    return NetfilterFormatter()
