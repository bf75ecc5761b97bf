"""Application wiring: logging, collaborators and a single resolution run."""

import logging
import sys

from dohdig.core.config import Settings
from dohdig.core.resolver import Resolver
from dohdig.core.servers import select_servers
from dohdig.dns.transport import HttpsTransport
from dohdig.geo.xdb import init_searcher
from dohdig.output.handlers import DefaultPrintHandler, OutputHandler, RegionPrintHandler
from dohdig.utils.decorators import init_sentry, sentry_exception_catcher

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "WARNING") -> None:
    """Configure logging for the application. Logs go to stderr."""
    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Set dohdig loggers to the requested level
    logging.getLogger("dohdig").setLevel(level)


def build_handler(settings: Settings) -> OutputHandler:
    """Pick the output handler for the configured format."""
    if settings.use_region_output:
        init_searcher(settings.xdb_filepath)
        return RegionPrintHandler()

    return DefaultPrintHandler()


def build_resolver(settings: Settings, transport: HttpsTransport) -> Resolver:
    """Create a resolver with the servers selected by the server keyword."""
    resolver = Resolver(transport=transport, retries=settings.retries)

    for server in select_servers(settings.server):
        resolver.add_server(server)

    return resolver


@sentry_exception_catcher
async def run(settings: Settings, domain: str) -> None:
    """Resolve ``domain`` once against the configured servers."""
    init_sentry()

    logger.debug(
        "Resolving %s %s via %s (timeout=%dms, retries=%d, fmt=%s)",
        domain,
        settings.record_type,
        settings.server,
        settings.timeout,
        settings.retries,
        settings.fmt,
    )

    handler = build_handler(settings)

    async with HttpsTransport(timeout=settings.timeout_seconds) as transport:
        resolver = build_resolver(settings, transport)
        await resolver.resolve(domain, settings.record_type, handler)
