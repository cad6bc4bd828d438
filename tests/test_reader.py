import io
import queue
import struct
import sys
import threading
from dataclasses import dataclass

import pytest

from fastpasta.config import Config
from fastpasta.input_scanner import InputScanner
from fastpasta.readers import FileReader, StreamSkipReader
from fastpasta.reader import get_chunk, init_reader, spawn_reader
from fastpasta.stats_controller import StatKind

RDH_SIZE = 64


@dataclass(frozen=True)
class FakeRdh:
    link_id: int
    offset_to_next: int

    @property
    def payload_size(self) -> int:
        return self.offset_to_next - RDH_SIZE

    def to_bytes(self) -> bytes:
        return struct.pack("<BH61x", self.link_id, self.offset_to_next)

    @classmethod
    def load(cls, reader):
        data = reader.read(RDH_SIZE)
        if len(data) < RDH_SIZE:
            raise EOFError("short RDH")
        link_id, offset = struct.unpack_from("<BH", data)
        return cls(link_id, offset)


def build_stream(cdps):
    parts = []
    for link_id, payload in cdps:
        rdh = FakeRdh(link_id, RDH_SIZE + len(payload))
        parts.append(rdh.to_bytes() + payload)
    return b"".join(parts)


def make_scanner(data, filter_link=None):
    stats = queue.Queue()
    reader = StreamSkipReader(io.BytesIO(data))
    scanner = InputScanner(Config(filter_link=filter_link), reader, stats, FakeRdh)
    return scanner, stats


def drain(channel):
    items = []
    while True:
        item = channel.get(timeout=5)
        if item is None:
            return items
        items.append(item)


def test_get_chunk_reads_all_when_fewer_than_chunk_size():
    payloads = [bytes([i]) * 16 for i in range(3)]
    scanner, _ = make_scanner(build_stream([(0, p) for p in payloads]))
    chunk = get_chunk(scanner, 10)
    assert len(chunk) == 3
    assert [payload for _, payload, _ in chunk] == payloads
    step = RDH_SIZE + 16
    assert chunk.mem_positions == (0, step, 2 * step)


def test_get_chunk_respects_chunk_size():
    scanner, _ = make_scanner(build_stream([(0, b"\x01" * 8)] * 5))
    sizes = [len(get_chunk(scanner, 2)) for _ in range(3)]
    assert sizes == [2, 2, 1]
    with pytest.raises(EOFError):
        get_chunk(scanner, 2)


def test_get_chunk_empty_input_raises_eof():
    scanner, _ = make_scanner(b"")
    with pytest.raises(EOFError):
        get_chunk(scanner, 10)


def test_get_chunk_stops_on_invalid_data():
    good = FakeRdh(0, RDH_SIZE + 4).to_bytes() + b"abcd"
    bad = FakeRdh(0, 10).to_bytes()
    scanner, stats = make_scanner(good + bad + good)
    chunk = get_chunk(scanner, 10)
    assert len(chunk) == 1
    kinds = []
    while not stats.empty():
        kinds.append(stats.get_nowait().kind)
    assert StatKind.ERROR in kinds


def test_get_chunk_filters_links():
    cdps = [(0, b"a" * 4), (1, b"b" * 4), (0, b"c" * 4), (1, b"d" * 4)]
    scanner, _ = make_scanner(build_stream(cdps), filter_link=1)
    chunk = get_chunk(scanner, 10)
    assert [payload for _, payload, _ in chunk] == [b"bbbb", b"dddd"]
    assert all(rdh.link_id == 1 for rdh in chunk.rdhs)


def test_spawn_reader_sends_all_chunks_then_end_marker():
    scanner, _ = make_scanner(build_stream([(2, b"\x00" * 8)] * 250))
    thread, channel = spawn_reader(threading.Event(), scanner)
    chunks = drain(channel)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert [len(chunk) for chunk in chunks] == [100, 100, 50]
    assert sum(len(chunk) for chunk in chunks) == 250


def test_spawn_reader_honours_stop_flag():
    scanner, _ = make_scanner(build_stream([(0, b"\x00" * 8)] * 10))
    stop = threading.Event()
    stop.set()
    thread, channel = spawn_reader(stop, scanner)
    chunks = drain(channel)
    thread.join(timeout=5)
    assert chunks == []


def test_spawn_reader_empty_input_only_end_marker():
    scanner, _ = make_scanner(b"")
    thread, channel = spawn_reader(threading.Event(), scanner)
    assert drain(channel) == []
    thread.join(timeout=5)
    assert not thread.is_alive()


def test_init_reader_opens_file(tmp_path):
    path = tmp_path / "input.raw"
    path.write_bytes(b"0123456789")
    reader = init_reader(Config(input_file=path))
    try:
        assert isinstance(reader, FileReader)
        assert reader.read(4) == b"0123"
        reader.seek_relative(2)
        assert reader.read(4) == b"6789"
    finally:
        reader.close()


def test_init_reader_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        init_reader(Config(input_file=tmp_path / "missing.raw"))


def test_init_reader_uses_stdin(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"stdin-data")))
    reader = init_reader(Config())
    assert isinstance(reader, StreamSkipReader)
    reader.seek_relative(6)
    assert reader.read(4) == b"data"