"""Tests for geo/xdb.py."""

# pylint: disable=missing-function-docstring,redefined-outer-name

import ipaddress
import logging
import struct

import pytest

from dohdig.geo import xdb
from dohdig.geo.xdb import (
    HEADER_INFO_LENGTH,
    SEGMENT_INDEX_SIZE,
    VECTOR_INDEX_LENGTH,
    XdbSearcher,
    get_searcher,
    init_searcher,
    search_by_ip,
    set_searcher,
)
from dohdig.utils.exceptions import RegionLookupError

US = "United States|0|California|Los Angeles|0"

SEGMENTS = [
    ("1.0.0.0", "1.0.0.255", "Australia|0|0|0|0"),
    ("10.0.0.0", "10.0.0.255", "Private|A|0|0|0"),
    ("10.0.1.0", "10.0.1.255", "Private|B|0|0|0"),
    ("10.0.2.0", "10.0.255.255", "Private|C|0|0|0"),
    ("93.184.216.0", "93.184.216.255", US),
    ("172.16.0.0", "172.16.0.255", ""),
    ("172.16.1.0", "172.16.1.255", "Shenzhen|Telecom"),
]


def _split_by_block(start: int, end: int):
    """Split a range so that no piece crosses a /16 vector cell."""
    while start <= end:
        piece_end = min(end, start | 0xFFFF)
        yield start, piece_end
        start = piece_end + 1


def build_xdb(segments) -> bytes:
    """Build an ip2region v2 database image for the given segments."""
    pieces = []
    for start, end, region in segments:
        first = int(ipaddress.IPv4Address(start))
        last = int(ipaddress.IPv4Address(end))
        pieces.extend((s, e, region) for s, e in _split_by_block(first, last))
    pieces.sort()

    data_start = HEADER_INFO_LENGTH + VECTOR_INDEX_LENGTH
    data = bytearray()
    offsets = {}
    for _, _, region in pieces:
        if region not in offsets:
            offsets[region] = data_start + len(data)
            data += region.encode("utf-8")

    index_start = data_start + len(data)
    index = bytearray()
    vector = bytearray(VECTOR_INDEX_LENGTH)
    cells = {}

    for i, (start, end, region) in enumerate(pieces):
        ptr = index_start + i * SEGMENT_INDEX_SIZE
        encoded = region.encode("utf-8")
        index += struct.pack("<IIHI", start, end, len(encoded), offsets[region])
        cell = ((start >> 24) & 0xFF, (start >> 16) & 0xFF)
        first, _ = cells.get(cell, (ptr, ptr))
        cells[cell] = (first, ptr)

    for (il0, il1), (first, last) in cells.items():
        struct.pack_into("<II", vector, (il0 * 256 + il1) * 8, first, last)

    end_index = index_start + (len(pieces) - 1) * SEGMENT_INDEX_SIZE
    header = struct.pack("<HHIII", 2, 1, 1700000000, index_start, end_index)

    return header.ljust(HEADER_INFO_LENGTH, b"\0") + bytes(vector) + bytes(data) + bytes(index)


@pytest.fixture(scope="module")
def xdb_bytes():
    return build_xdb(SEGMENTS)


@pytest.fixture
def searcher(xdb_bytes):
    return XdbSearcher(xdb_bytes)


@pytest.fixture
def xdb_file(tmp_path, xdb_bytes):
    path = tmp_path / "ip2region.xdb"
    path.write_bytes(xdb_bytes)
    return path


class TestXdbSearcher:
    """Tests for XdbSearcher."""

    def test_header(self, searcher):
        assert searcher.header.version == 2
        assert searcher.header.index_policy == 1
        assert searcher.header.start_index_ptr > HEADER_INFO_LENGTH

    def test_finds_region(self, searcher):
        assert searcher.search("93.184.216.34") == US

    @pytest.mark.parametrize(
        "ip,region",
        [
            ("10.0.0.0", "Private|A|0|0|0"),
            ("10.0.0.255", "Private|A|0|0|0"),
            ("10.0.1.7", "Private|B|0|0|0"),
            ("10.0.2.0", "Private|C|0|0|0"),
            ("10.0.255.255", "Private|C|0|0|0"),
            ("1.0.0.1", "Australia|0|0|0|0"),
            ("172.16.1.9", "Shenzhen|Telecom"),
        ],
    )
    def test_segment_boundaries(self, searcher, ip, region):
        assert searcher.search(ip) == region

    def test_gap_inside_cell(self, searcher):
        with pytest.raises(RegionLookupError):
            searcher.search("172.16.9.1")

    def test_uncovered_cell(self, searcher):
        with pytest.raises(RegionLookupError):
            searcher.search("8.8.8.8")

    def test_empty_region_is_a_miss(self, searcher):
        with pytest.raises(RegionLookupError):
            searcher.search("172.16.0.5")

    @pytest.mark.parametrize("ip", ["2001:db8::1", "example.com", "", "300.1.1.1"])
    def test_rejects_non_ipv4(self, searcher, ip):
        with pytest.raises(RegionLookupError):
            searcher.search(ip)

    def test_rejects_short_content(self):
        with pytest.raises(RegionLookupError):
            XdbSearcher(b"\0" * 512)

    def test_from_file(self, xdb_file):
        assert XdbSearcher.from_file(str(xdb_file)).search("10.0.1.1") == "Private|B|0|0|0"

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(RegionLookupError, match="cannot read"):
            XdbSearcher.from_file(str(tmp_path / "missing.xdb"))


class TestProcessSearcher:
    """Tests for the module-level searcher lifecycle."""

    def test_init_with_explicit_path(self, xdb_file):
        assert init_searcher(str(xdb_file)) is not None
        assert search_by_ip("93.184.216.34") == US

    def test_lazy_init_from_environment(self, xdb_file, monkeypatch):
        monkeypatch.setenv("XDB_FILEPATH", str(xdb_file))
        assert search_by_ip("93.184.216.34") == US

    def test_missing_configuration_fails_lookup(self, monkeypatch):
        monkeypatch.delenv("XDB_FILEPATH", raising=False)
        with pytest.raises(RegionLookupError, match="not loaded"):
            search_by_ip("93.184.216.34")

    def test_failed_load_attempted_once(self, tmp_path, caplog):
        missing = str(tmp_path / "missing.xdb")

        with caplog.at_level(logging.WARNING, logger="dohdig"):
            assert init_searcher(missing) is None
            for _ in range(3):
                with pytest.raises(RegionLookupError):
                    get_searcher()

        assert caplog.text.count("cannot read xdb file") == 1

    def test_set_searcher(self, searcher):
        set_searcher(searcher)
        assert xdb.get_searcher() is searcher
