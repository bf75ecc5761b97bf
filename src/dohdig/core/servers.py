"""DoH server descriptors and server keyword selection."""

import logging
from dataclasses import dataclass
from typing import Dict, List

logger = logging.getLogger(__name__)

CUSTOM_SERVER_NAME = "Custom"


@dataclass(frozen=True)
class DohServer:
    """A DoH JSON endpoint and the label shown in rendered output."""

    name: str
    url: str

    @classmethod
    def custom(cls, name: str, url: str) -> "DohServer":
        """Build a user-supplied server. The URL is not validated here."""
        return cls(name=name, url=url)


GOOGLE = DohServer("Google", "https://dns.google/resolve")
CLOUDFLARE = DohServer("Cloudflare", "https://cloudflare-dns.com/dns-query")
QUAD9 = DohServer("Quad9", "https://9.9.9.9:5053/dns-query")

BUILTIN_SERVERS: Dict[str, DohServer] = {
    "google": GOOGLE,
    "cloudflare": CLOUDFLARE,
    "quad9": QUAD9,
}

DEFAULT_SERVER = CLOUDFLARE


def select_servers(keyword: str) -> List[DohServer]:
    """
    Resolve a server keyword to the servers to query, in order.

    Accepts a built-in name, ``all``, or a URL starting with ``http``.
    Anything else falls back to the default server with a notice.
    """
    key = keyword.strip().lower()

    if key in BUILTIN_SERVERS:
        return [BUILTIN_SERVERS[key]]

    if key == "all":
        return [GOOGLE, CLOUDFLARE, QUAD9]

    if key.startswith("http"):
        return [DohServer.custom(CUSTOM_SERVER_NAME, keyword.strip())]

    logger.warning(
        "Invalid server %r, using default server %s", keyword, DEFAULT_SERVER.name
    )

    return [DEFAULT_SERVER]
