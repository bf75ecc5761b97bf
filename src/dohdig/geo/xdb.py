"""IPv4 region lookup backed by an ip2region v2 xdb database."""

import ipaddress
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dohdig.core.config import get_settings
from dohdig.utils.exceptions import RegionLookupError

logger = logging.getLogger(__name__)

# xdb layout constants
HEADER_INFO_LENGTH = 256
VECTOR_INDEX_ROWS = 256
VECTOR_INDEX_COLS = 256
VECTOR_INDEX_SIZE = 8
SEGMENT_INDEX_SIZE = 14

VECTOR_INDEX_LENGTH = VECTOR_INDEX_ROWS * VECTOR_INDEX_COLS * VECTOR_INDEX_SIZE

_HEADER = struct.Struct("<HHIII")
_VECTOR_ENTRY = struct.Struct("<II")
_SEGMENT_ENTRY = struct.Struct("<IIHI")


@dataclass(frozen=True)
class XdbHeader:
    """Leading fields of the 256-byte xdb header."""

    version: int
    index_policy: int
    created_at: int
    start_index_ptr: int
    end_index_ptr: int


class XdbSearcher:
    """Binary search over an xdb file held entirely in memory."""

    def __init__(self, content: bytes):
        if len(content) < HEADER_INFO_LENGTH + VECTOR_INDEX_LENGTH:
            raise RegionLookupError(
                f"xdb content too short: {len(content)} bytes"
            )

        self._content = content
        self.header = XdbHeader(*_HEADER.unpack_from(content, 0))

    @classmethod
    def from_file(cls, path: str) -> "XdbSearcher":
        """Load the whole database file into memory."""
        try:
            content = Path(path).read_bytes()
        except OSError as e:
            raise RegionLookupError(f"cannot read xdb file {path}: {e}") from e

        return cls(content)

    def search(self, ip: str) -> str:
        """
        Return the region string for a dotted-decimal IPv4 address.

        Raises RegionLookupError when the address is not IPv4 or has no region.
        """
        try:
            addr = ipaddress.IPv4Address(ip.strip())
        except ValueError as e:
            raise RegionLookupError(f"not an IPv4 address: {ip!r}") from e

        return self.search_int(int(addr))

    def search_int(self, ip: int) -> str:
        il0 = (ip >> 24) & 0xFF
        il1 = (ip >> 16) & 0xFF
        offset = HEADER_INFO_LENGTH + (
            il0 * VECTOR_INDEX_COLS * VECTOR_INDEX_SIZE + il1 * VECTOR_INDEX_SIZE
        )
        start_ptr, end_ptr = _VECTOR_ENTRY.unpack_from(self._content, offset)

        if start_ptr == 0 or end_ptr < start_ptr:
            raise RegionLookupError(f"no region for {ipaddress.IPv4Address(ip)}")

        low = 0
        high = (end_ptr - start_ptr) // SEGMENT_INDEX_SIZE

        while low <= high:
            mid = (low + high) // 2
            pos = start_ptr + mid * SEGMENT_INDEX_SIZE

            if pos + SEGMENT_INDEX_SIZE > len(self._content):
                raise RegionLookupError(f"corrupt xdb segment index at {pos}")

            start_ip, end_ip, data_len, data_ptr = _SEGMENT_ENTRY.unpack_from(
                self._content, pos
            )

            if ip < start_ip:
                high = mid - 1
            elif ip > end_ip:
                low = mid + 1
            else:
                if data_len == 0:
                    break
                data = self._content[data_ptr : data_ptr + data_len]
                return data.decode("utf-8", errors="replace")

        raise RegionLookupError(f"no region for {ipaddress.IPv4Address(ip)}")


# Process-wide searcher, loaded once
_searcher: Optional[XdbSearcher] = None
_load_attempted = False


def init_searcher(xdb_filepath: Optional[str] = None) -> Optional[XdbSearcher]:
    """
    Load the process-wide searcher.

    Uses ``xdb_filepath`` if given, else the XDB_FILEPATH setting. A missing
    or unreadable database is logged; lookups then fail until one loads.
    """
    global _searcher, _load_attempted

    _load_attempted = True
    path = xdb_filepath or get_settings().xdb_filepath

    if not path:
        logger.warning("No xdb database configured (set --xdb-filepath or XDB_FILEPATH)")
        return None

    try:
        _searcher = XdbSearcher.from_file(path)
    except RegionLookupError as e:
        logger.warning("%s", e)
        return None

    logger.info("Loaded xdb database %s (version %d)", path, _searcher.header.version)

    return _searcher


def get_searcher() -> XdbSearcher:
    """Get the process-wide searcher, loading it on first use."""
    if _searcher is None and not _load_attempted:
        init_searcher()

    if _searcher is None:
        raise RegionLookupError("xdb database not loaded")

    return _searcher


def set_searcher(searcher: XdbSearcher) -> None:
    """Set a custom searcher (useful for testing)."""
    global _searcher

    _searcher = searcher


def reset_searcher() -> None:
    """Reset the searcher (useful for testing)."""
    global _searcher, _load_attempted

    _searcher = None
    _load_attempted = False


def search_by_ip(ip: str) -> str:
    """Look up the region string for an IPv4 address."""
    return get_searcher().search(ip)
