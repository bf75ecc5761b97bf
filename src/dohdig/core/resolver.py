"""Retry-and-dispatch loop driving DoH queries across servers."""

import logging
from dataclasses import dataclass, field
from typing import List

from dohdig.core.servers import DohServer
from dohdig.dns.models import is_success
from dohdig.dns.transport import DnsTransport
from dohdig.output.handlers import OutputHandler

logger = logging.getLogger(__name__)


def build_query_uri(server: DohServer, name: str, record_type: str) -> str:
    """Build the DoH JSON request URI for one server."""
    return f"{server.url}?name={name}&type={record_type}"


@dataclass
class Resolver:
    """
    Queries each configured server in turn, retrying failed attempts.

    Every attempt's outcome goes to the output handler before the next one
    starts. The first successful attempt ends retries for that server only.
    """

    transport: DnsTransport
    retries: int = 3
    _servers: List[DohServer] = field(default_factory=list)

    @property
    def servers(self) -> List[DohServer]:
        """Return the configured servers in query order."""
        return list(self._servers)

    def add_server(self, server: DohServer) -> None:
        self._servers.append(server)

    async def resolve(self, name: str, record_type: str, handler: OutputHandler) -> None:
        """
        Resolve ``name`` against every server, reporting each attempt.

        Failures are never raised; they reach the handler as DnsError values.
        A retry budget of zero means no attempts at all.
        """
        for server in self._servers:
            uri = build_query_uri(server, name, record_type)

            for attempt in range(1, self.retries + 1):
                outcome = await self.transport.query(uri)
                logger.debug(
                    "%s attempt %d/%d (%s): %s",
                    server.name,
                    attempt,
                    self.retries,
                    uri,
                    "ok" if is_success(outcome) else outcome.message,
                )

                handler.handle(server, outcome)

                if is_success(outcome):
                    break
