"""Opening the input and reading it in chunks of CDPs on a background thread."""

from __future__ import annotations

import logging
import queue
import sys
import threading
from typing import Any

from fastpasta.config import Config
from fastpasta.data_wrapper import CdpChunk
from fastpasta.input_scanner import InputScanner, InvalidDataError
from fastpasta.readers import DEFAULT_CAPACITY, FileReader, StreamSkipReader

log = logging.getLogger(__name__)

CHANNEL_CDP_CHUNK_CAPACITY = 100
"""Depth of the queue that chunks are put on as they are read."""

CDP_CHUNK_SIZE = 100
"""Number of CDPs the reader thread tries to put in each chunk."""

_PUT_POLL_SECONDS = 0.1


def init_reader(config: Config) -> FileReader | StreamSkipReader:
    """Open the configured input file, or standard input when none is set.

    Raises OSError if the input file cannot be opened.
    """
    if config.input_file is not None:
        log.debug("Reading from file: %s", config.input_file)
        return FileReader(config.input_file, capacity=DEFAULT_CAPACITY)
    log.debug("Reading from stdin")
    stdin = sys.stdin
    if stdin is not None and stdin.isatty():
        log.error("stdin not redirected!")
    return StreamSkipReader()


def get_chunk(scanner: InputScanner, chunk_size: int) -> CdpChunk[Any]:
    """Read up to ``chunk_size`` CDPs into a chunk.

    Invalid data or the end of the input ends the chunk early with the CDPs
    read so far. If no CDP could be read at all, EOFError is raised. Any other
    error propagates.
    """
    chunk: CdpChunk[Any] = CdpChunk()
    for _ in range(chunk_size):
        try:
            cdp = scanner.load_cdp()
        except InvalidDataError:
            log.debug("Invalid data found, returning all CDPs found so far")
            break
        except EOFError:
            log.info("EOF reached! ")
            break
        chunk.push(cdp.rdh, cdp.payload, cdp.mem_pos)
    if not chunk:
        raise EOFError("No CDPs found")
    return chunk


def _put_unless_stopped(
    channel: "queue.Queue[CdpChunk[Any] | None]",
    item: CdpChunk[Any] | None,
    stop_event: threading.Event,
) -> bool:
    """Put ``item`` on the queue, giving up if the stop flag is raised while it is full."""
    while True:
        try:
            channel.put(item, timeout=_PUT_POLL_SECONDS)
            return True
        except queue.Full:
            if stop_event.is_set():
                return False


def spawn_reader(
    stop_event: threading.Event, scanner: InputScanner
) -> tuple[threading.Thread, "queue.Queue[CdpChunk[Any] | None]"]:
    """Start a thread that reads chunks of CDPs and puts them on a bounded queue.

    The thread stops at the end of the input, on a chunk that is not full, on
    an error or when ``stop_event`` is set. It then puts ``None`` on the queue
    to mark the end of the data. Returns the thread and the queue.
    """
    channel: "queue.Queue[CdpChunk[Any] | None]" = queue.Queue(
        maxsize=CHANNEL_CDP_CHUNK_CAPACITY
    )

    def run() -> None:
        stop_on_non_full_chunk = False
        try:
            while True:
                if stop_event.is_set() or stop_on_non_full_chunk:
                    log.debug("Stopping reader thread on stop flag")
                    break
                try:
                    chunk = get_chunk(scanner, CDP_CHUNK_SIZE)
                except EOFError:
                    log.debug("Stopping reader thread on EOF")
                    break
                except Exception as error:  # noqa: BLE001 - reported, then the thread ends
                    log.error("Unexpected Error reading CDP chunks: %s", error)
                    break
                if len(chunk) < CDP_CHUNK_SIZE:
                    stop_on_non_full_chunk = True
                    log.debug("Stopping reader thread on non-full chunk")
                if not _put_unless_stopped(channel, chunk, stop_event):
                    break
                if stop_event.is_set():
                    log.debug("Stopping reader thread")
                    break
        finally:
            if not _put_unless_stopped(channel, None, stop_event):
                try:
                    channel.put_nowait(None)
                except queue.Full:
                    log.debug("Queue full, end marker not delivered")

    thread = threading.Thread(target=run, name="Reader", daemon=True)
    thread.start()
    return thread, channel