"""Command line entry point."""

import argparse
import asyncio
import sys
from typing import List, Optional

from pydantic import ValidationError

from dohdig.app import configure_logging, run
from dohdig.core.config import Settings, validate_domain
from dohdig.utils.exceptions import ConfigError

VERSION = "0.1.0"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dohdig",
        description="Resolve a domain through DNS-over-HTTPS JSON endpoints.",
    )
    parser.add_argument("--version", action="version", version=f"dohdig {VERSION}")
    parser.add_argument("domain", help="The domain to resolve.")
    parser.add_argument(
        "-s",
        "--server",
        default=None,
        help="DNS server: cloudflare, google, quad9, all, or a DoH URL (default: cloudflare).",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Timeout per query in milliseconds (default: 10000).",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Attempts per server, 0-255 (default: 3).",
    )
    parser.add_argument(
        "-t",
        "--type",
        dest="record_type",
        default=None,
        help="The type of record to resolve (default: A).",
    )
    parser.add_argument(
        "-f",
        "--fmt",
        default=None,
        help="Output format: default, ip2region (default: default).",
    )
    parser.add_argument(
        "--xdb-filepath",
        default=None,
        help="Path to the ip2region xdb database (default: $XDB_FILEPATH).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    """
    Build settings from parsed arguments on top of the environment.

    Raises ConfigError when a value does not validate.
    """
    overrides = {
        key: value
        for key, value in (
            ("server", args.server),
            ("timeout", args.timeout),
            ("retries", args.retries),
            ("record_type", args.record_type),
            ("fmt", args.fmt),
            ("xdb_filepath", args.xdb_filepath),
        )
        if value is not None
    }

    if args.verbose:
        overrides["log_level"] = "DEBUG"

    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line tool."""
    args = parse_args(argv)

    try:
        settings = settings_from_args(args)
        domain = validate_domain(args.domain)
    except (ConfigError, ValueError) as e:
        print(f"dohdig: error: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    asyncio.run(run(settings, domain))

    return 0


if __name__ == "__main__":
    sys.exit(main())
