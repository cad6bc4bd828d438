"""Scanning of CDPs (RDH plus payload) from an input reader, with optional link filtering.

The RDH type used by :class:`InputScanner` must provide ``load(reader)`` and
``load_from_rdh0(reader, rdh0)`` class methods, and its instances must expose
``link_id``, ``offset_to_next`` and ``payload_size``.
"""

from __future__ import annotations

import logging
import queue
from typing import Any, NamedTuple

from fastpasta.config import Config
from fastpasta.mem_pos_tracker import RDH_CRU_SIZE_BYTES, MemPosTracker
from fastpasta.stats_controller import Stat, StatKind

log = logging.getLogger(__name__)

_MAX_OFFSET_AFTER_RDH = 0x4FFF


class InvalidDataError(ValueError):
    """The input holds data that cannot be scanned any further."""


class CdpWrapper(NamedTuple):
    """An RDH, its payload and the memory position it was loaded at."""

    rdh: Any
    payload: bytes
    mem_pos: int


def sanity_check_offset_next(
    rdh: Any, current_memory_address: int, stats_sender: "queue.Queue[Stat | None]"
) -> None:
    """Reject RDHs whose offset to next is below 64 bytes or above 20 KB.

    The problem is reported to the stats controller as an error, and
    InvalidDataError is raised.
    """
    offset = rdh.offset_to_next
    after_rdh = offset - RDH_CRU_SIZE_BYTES
    if after_rdh < 0:
        message = f"RDH offset to next is {offset} (less than 64 bytes). "
    elif after_rdh > _MAX_OFFSET_AFTER_RDH:
        message = "RDH offset is larger than 20KB. "
    else:
        return
    message += f"\n[0x{current_memory_address:X}]:\n     {rdh}"
    stats_sender.put(Stat(StatKind.ERROR, message))
    raise InvalidDataError(message)


class InputScanner:
    """Reads CDPs from a reader, tracks the memory position and reports stats."""

    def __init__(
        self,
        config: Config,
        reader: Any,
        stats_sender: "queue.Queue[Stat | None]",
        rdh_type: Any,
        tracker: MemPosTracker | None = None,
        initial_rdh0: Any = None,
    ) -> None:
        self._reader = reader
        self._stats = stats_sender
        self._rdh_type = rdh_type
        self._tracker = tracker if tracker is not None else MemPosTracker()
        self._link_to_filter: int | None = config.filter_link
        self._unique_links_observed: list[int] = []
        self._initial_rdh0 = initial_rdh0

    def _report(self, kind: StatKind, value: Any) -> None:
        self._stats.put(Stat(kind, value))

    def _observe_link(self, link_id: int) -> None:
        if link_id not in self._unique_links_observed:
            self._unique_links_observed.append(link_id)
            self._report(StatKind.LINKS_OBSERVED, link_id)

    def _skip_rest_of_cdp(self, rdh: Any) -> None:
        self._reader.seek_relative(self._tracker.next(rdh.offset_to_next))

    def load_rdh_cru(self) -> Any:
        """Load the next RDH, skipping RDHs of other links when a filter is set."""
        if self._initial_rdh0 is not None:
            rdh0, self._initial_rdh0 = self._initial_rdh0, None
            rdh = self._rdh_type.load_from_rdh0(self._reader, rdh0)
        else:
            rdh = self._rdh_type.load(self._reader)
        log.debug(
            "Loaded RDH at [0x%X]: \n       %s", self._tracker.memory_address_bytes, rdh
        )
        link_id = rdh.link_id
        self._report(StatKind.RDHS_SEEN, 1)
        self._observe_link(link_id)
        sanity_check_offset_next(rdh, self._tracker.memory_address_bytes, self._stats)
        if self._link_to_filter is None:
            return rdh
        if self._link_to_filter == link_id:
            self._report(StatKind.RDHS_FILTERED, 1)
            return rdh
        log.debug("Loaded RDH offset to next: %d", rdh.offset_to_next)
        self._skip_rest_of_cdp(rdh)
        return self.load_next_rdh_to_filter()

    def load_payload_raw(self, payload_size: int) -> bytes:
        """Read exactly ``payload_size`` bytes of payload; EOFError if the input ends."""
        payload = self._reader.read(payload_size)
        if len(payload) < payload_size:
            raise EOFError(
                f"input ended after {len(payload)} of {payload_size} payload bytes"
            )
        self._report(StatKind.PAYLOAD_SIZE, payload_size)
        return payload

    def load_cdp(self) -> CdpWrapper:
        """Load the next RDH and its payload."""
        loading_at = self._tracker.memory_address_bytes
        rdh = self.load_rdh_cru()
        self._tracker.memory_address_bytes += rdh.offset_to_next
        payload = self.load_payload_raw(rdh.payload_size)
        return CdpWrapper(rdh, payload, loading_at)

    def load_next_rdh_to_filter(self) -> Any:
        """Load RDHs until one matches the link filter; EOFError if the input ends first."""
        if self._link_to_filter is None:
            raise ValueError("no link filter is set")
        while True:
            rdh = self._rdh_type.load(self._reader)
            log.debug("Loaded RDH: \n      %s", rdh)
            log.debug("Loaded RDH offset to next: %d", rdh.offset_to_next)
            sanity_check_offset_next(
                rdh, self._tracker.memory_address_bytes, self._stats
            )
            link_id = rdh.link_id
            self._report(StatKind.RDHS_SEEN, 1)
            self._observe_link(link_id)
            if self._link_to_filter == link_id:
                self._report(StatKind.RDHS_FILTERED, 1)
                return rdh
            self._skip_rest_of_cdp(rdh)

    def current_mem_pos(self) -> int:
        """The current memory position in the input, in bytes."""
        return self._tracker.memory_address_bytes