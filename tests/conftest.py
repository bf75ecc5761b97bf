"""Pytest configuration and fixtures."""

# pylint: disable=redefined-outer-name

import os
from dataclasses import dataclass, field
from typing import Callable, Optional

import pytest

from dohdig.core.config import Settings, get_settings
from dohdig.core.servers import DohServer
from dohdig.dns.models import DnsAnswer, DnsError, DnsResponse, QueryOutcome
from dohdig.geo.xdb import reset_searcher

# Keep the developer's environment out of the tests
for _var in list(os.environ):
    if _var.upper().startswith("DOHDIG_") or _var.upper() in ("XDB_FILEPATH", "SENTRY_DSN"):
        os.environ.pop(_var)


@dataclass
class FakeTransport:
    """Transport returning scripted outcomes and recording every URI."""

    # Outcome factory: (uri, call index for that uri) -> outcome
    respond: Callable[[str, int], QueryOutcome]
    calls: list[str] = field(default_factory=list)

    async def query(self, uri: str) -> QueryOutcome:
        attempt = self.calls.count(uri) + 1
        self.calls.append(uri)
        return self.respond(uri, attempt)


@dataclass
class RecordingHandler:
    """Output handler that keeps every (server, outcome) pair."""

    seen: list[tuple[DohServer, QueryOutcome]] = field(default_factory=list)

    def handle(self, server: DohServer, outcome: QueryOutcome) -> None:
        self.seen.append((server, outcome))


def make_answer(
    data: str = "93.184.216.34",
    name: str = "example.com",
    qtype: int = 1,
    ttl: int = 300,
    expires: Optional[str] = None,
) -> DnsAnswer:
    return DnsAnswer(name=name, type=qtype, ttl=ttl, data=data, expires=expires)


def make_response(*answers: DnsAnswer, status: int = 0) -> DnsResponse:
    return DnsResponse(status=status, answer=list(answers))


SERVFAIL = DnsError(code=500, message="ClientConnectorError: connection refused")


@pytest.fixture(autouse=True)
def clean_globals():
    """Reset cached settings and the region searcher around each test."""
    get_settings.cache_clear()
    reset_searcher()
    yield
    get_settings.cache_clear()
    reset_searcher()


@pytest.fixture
def test_settings():
    """Settings for testing, ignoring any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def always_fail():
    return FakeTransport(respond=lambda uri, attempt: SERVFAIL)


@pytest.fixture
def always_succeed():
    return FakeTransport(respond=lambda uri, attempt: make_response(make_answer()))


@pytest.fixture
def handler():
    return RecordingHandler()
