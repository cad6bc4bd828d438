import io
import queue
import struct
from dataclasses import dataclass

import pytest

from fastpasta.config import Config
from fastpasta.input_scanner import (
    CdpWrapper,
    InputScanner,
    InvalidDataError,
    sanity_check_offset_next,
)
from fastpasta.readers import FileReader, StreamSkipReader
from fastpasta.stats_controller import Stat, StatKind

_LAYOUT = struct.Struct("<BHH59x")


@dataclass(frozen=True)
class FakeRdh:
    link_id: int
    offset_to_next: int
    payload_size: int

    def to_bytes(self) -> bytes:
        return _LAYOUT.pack(self.link_id, self.offset_to_next, self.payload_size)

    @classmethod
    def _from_bytes(cls, data: bytes) -> "FakeRdh":
        if len(data) < _LAYOUT.size:
            raise EOFError("short RDH")
        return cls(*_LAYOUT.unpack(data))

    @classmethod
    def load(cls, reader) -> "FakeRdh":
        return cls._from_bytes(reader.read(_LAYOUT.size))

    @classmethod
    def load_from_rdh0(cls, reader, rdh0: bytes) -> "FakeRdh":
        return cls._from_bytes(rdh0 + reader.read(_LAYOUT.size - len(rdh0)))


def _cdp(link_id: int, payload: bytes) -> bytes:
    rdh = FakeRdh(link_id, 64 + len(payload), len(payload))
    return rdh.to_bytes() + payload


def _drain(stats: queue.Queue) -> list[Stat]:
    items = []
    while not stats.empty():
        items.append(stats.get_nowait())
    return items


def _scanner(data: bytes, filter_link=None, initial_rdh0=None):
    stats: queue.Queue = queue.Queue()
    reader = StreamSkipReader(io.BytesIO(data))
    scanner = InputScanner(
        Config(filter_link=filter_link), reader, stats, FakeRdh, initial_rdh0=initial_rdh0
    )
    return scanner, stats


def test_load_rdh_from_file_with_matching_filter(tmp_path):
    rdh = FakeRdh(0, 64, 0)
    path = tmp_path / "test.raw"
    path.write_bytes(rdh.to_bytes())
    stats: queue.Queue = queue.Queue()
    with FileReader(path) as reader:
        scanner = InputScanner(Config(filter_link=0), reader, stats, FakeRdh)
        assert scanner.load_rdh_cru() == rdh
    kinds = [s.kind for s in _drain(stats)]
    assert kinds.count(StatKind.RDHS_FILTERED) == 1


def test_load_rdh_from_file_other_link_hits_eof(tmp_path):
    path = tmp_path / "test.raw"
    path.write_bytes(FakeRdh(100, 64, 0).to_bytes())
    stats: queue.Queue = queue.Queue()
    with FileReader(path) as reader:
        scanner = InputScanner(Config(filter_link=0), reader, stats, FakeRdh)
        with pytest.raises(EOFError):
            scanner.load_rdh_cru()
    collected = _drain(stats)
    assert Stat(StatKind.LINKS_OBSERVED, 100) in collected
    assert Stat(StatKind.RDHS_FILTERED, 1) not in collected


def test_load_cdp_without_filter_tracks_positions():
    first = _cdp(3, b"\x01\x02\x03\x04")
    second = _cdp(5, b"\xaa\xbb")
    scanner, stats = _scanner(first + second)
    cdp1 = scanner.load_cdp()
    cdp2 = scanner.load_cdp()
    assert cdp1 == CdpWrapper(FakeRdh(3, 68, 4), b"\x01\x02\x03\x04", 0)
    assert cdp2.rdh.link_id == 5
    assert cdp2.payload == b"\xaa\xbb"
    assert cdp2.mem_pos == len(first)
    assert scanner.current_mem_pos() == len(first) + len(second)
    collected = _drain(stats)
    assert collected.count(Stat(StatKind.RDHS_SEEN, 1)) == 2
    assert Stat(StatKind.PAYLOAD_SIZE, 4) in collected
    assert Stat(StatKind.PAYLOAD_SIZE, 2) in collected


def test_links_observed_reported_once_per_link():
    data = _cdp(1, b"") + _cdp(1, b"") + _cdp(2, b"")
    scanner, stats = _scanner(data)
    for _ in range(3):
        scanner.load_cdp()
    links = [s.value for s in _drain(stats) if s.kind is StatKind.LINKS_OBSERVED]
    assert links == [1, 2]


def test_filter_skips_other_links():
    data = _cdp(1, b"skipme") + _cdp(1, b"again") + _cdp(0, b"keep")
    scanner, stats = _scanner(data, filter_link=0)
    cdp = scanner.load_cdp()
    assert cdp.rdh.link_id == 0
    assert cdp.payload == b"keep"
    assert scanner.current_mem_pos() == len(data)
    collected = _drain(stats)
    assert collected.count(Stat(StatKind.RDHS_SEEN, 1)) == 3
    assert collected.count(Stat(StatKind.RDHS_FILTERED, 1)) == 1


def test_initial_rdh0_is_used_for_first_rdh():
    full = _cdp(4, b"xy")
    rdh0 = full[:16]
    scanner, _ = _scanner(full[16:], initial_rdh0=rdh0)
    cdp = scanner.load_cdp()
    assert cdp.rdh == FakeRdh(4, 66, 2)
    assert cdp.payload == b"xy"


def test_truncated_payload_raises_eof():
    data = FakeRdh(0, 74, 10).to_bytes() + b"abc"
    scanner, stats = _scanner(data)
    with pytest.raises(EOFError):
        scanner.load_cdp()
    assert all(s.kind is not StatKind.PAYLOAD_SIZE for s in _drain(stats))


def test_load_next_rdh_to_filter_requires_filter():
    scanner, _ = _scanner(_cdp(0, b""))
    with pytest.raises(ValueError):
        scanner.load_next_rdh_to_filter()


def test_load_cdp_rejects_small_offset():
    scanner, stats = _scanner(FakeRdh(0, 32, 0).to_bytes())
    with pytest.raises(InvalidDataError):
        scanner.load_cdp()
    errors = [s for s in _drain(stats) if s.kind is StatKind.ERROR]
    assert len(errors) == 1


@pytest.mark.parametrize("offset", [64, 64 + 0x4FFF])
def test_sanity_check_accepts_valid_offsets(offset):
    stats: queue.Queue = queue.Queue()
    assert sanity_check_offset_next(FakeRdh(0, offset, 0), 0, stats) is None
    assert stats.empty()


def test_sanity_check_offset_below_rdh_size():
    stats: queue.Queue = queue.Queue()
    with pytest.raises(InvalidDataError, match="less than 64 bytes"):
        sanity_check_offset_next(FakeRdh(0, 63, 0), 0x40, stats)
    error = stats.get_nowait()
    assert error.kind is StatKind.ERROR
    assert "RDH offset to next is 63" in error.value
    assert "[0x40]" in error.value


def test_sanity_check_offset_too_large():
    stats: queue.Queue = queue.Queue()
    with pytest.raises(InvalidDataError, match="larger than 20KB"):
        sanity_check_offset_next(FakeRdh(0, 64 + 0x4FFF + 1, 0), 0, stats)
    assert stats.get_nowait().kind is StatKind.ERROR