"""Output handlers rendering each query attempt."""

# pylint: disable=missing-function-docstring

import json
import logging
import sys
from typing import Any, Callable, Optional, Protocol, TextIO

from dohdig.core.servers import DohServer
from dohdig.dns.models import (
    DnsAnswer,
    DnsAuthority,
    DnsError,
    DnsResponse,
    QueryOutcome,
)
from dohdig.dns.qtype import QueryType
from dohdig.geo.xdb import search_by_ip

logger = logging.getLogger(__name__)

SERVER_SEPARATOR = "-" * 33
RECORD_SEPARATOR = "  " + "-" * 12


class OutputHandler(Protocol):
    """Protocol for consumers of per-attempt query outcomes."""

    def handle(self, server: DohServer, outcome: QueryOutcome) -> None: ...


class DefaultPrintHandler:
    """Prints every field the provider returned, section by section."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Looked up on each write so a redirected sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def _line(self, text: str) -> None:
        print(text, file=self.stream)

    def handle(self, server: DohServer, outcome: QueryOutcome) -> None:
        self._line(SERVER_SEPARATOR)
        self._line(f"Dns Server: {server.name}")

        if isinstance(outcome, DnsError):
            self._line(f"Error: {outcome.message}")
            return

        self._render_response(outcome)

    def _render_response(self, response: DnsResponse) -> None:
        if response.status is not None:
            self._line(f"Status: {response.status}")

        if response.error is not None:
            self._line(f"Error: {response.error}")

        if response.question is not None:
            self._line("Question:")
            for question in response.question:
                self._line(RECORD_SEPARATOR)
                self._line(f"  Name: {question.name}")
                self._line(f"  Type: {question.qtype}")

        if response.authority is not None:
            self._line("Authority:")
            for record in response.authority:
                self._render_record(record)

        if response.answer is not None:
            self._line("Answer:")
            for answer in response.answer:
                self._render_answer(answer)

        if response.comment is not None:
            self._line(f"Comment: {format_comment(response.comment)}")

    def _render_record(self, record: DnsAuthority) -> None:
        self._line(RECORD_SEPARATOR)
        self._line(f"  Name: {record.name}")
        self._line(f"  Type: {record.qtype}")
        self._line(f"  TTL: {record.ttl}")
        self._line(f"  Data: {record.data}")

    def _render_answer(self, answer: DnsAnswer) -> None:
        self._render_record(answer)


class RegionPrintHandler(DefaultPrintHandler):
    """
    Default rendering plus an IP region line under each A record.

    The lookup is best effort: when it raises, the answer is printed
    without the region line and nothing else changes.
    """

    def __init__(
        self,
        lookup: Optional[Callable[[str], str]] = None,
        stream: Optional[TextIO] = None,
    ):
        super().__init__(stream)
        self._lookup = lookup or search_by_ip

    def _render_answer(self, answer: DnsAnswer) -> None:
        super()._render_answer(answer)

        if answer.qtype != QueryType.A:
            return

        try:
            region = self._lookup(answer.data)
        except Exception as e:  # pylint: disable=broad-except
            logger.debug("No region for %s: %s", answer.data, e)
            return

        self._line(f"  IPRG: {region}")


def format_comment(comment: Any) -> str:
    """Render the free-form Comment value as compact JSON."""
    return json.dumps(comment, ensure_ascii=False, separators=(",", ":"), default=str)
