"""Collects processing statistics, enforces the error limit and prints the final report."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Iterable

from fastpasta.config import Config
from fastpasta.report import Report, StatSummary

log = logging.getLogger(__name__)


class StatKind(Enum):
    """The kinds of statistics a :class:`StatsController` accepts."""

    FATAL = auto()
    """Fatal error (str); processing stops."""
    ERROR = auto()
    """Non-fatal error (str); reported and processing continues."""
    RDHS_SEEN = auto()
    """Increment of the total RDHs seen (int)."""
    RDHS_FILTERED = auto()
    """Increment of the total RDHs that passed the link filter (int)."""
    PAYLOAD_SIZE = auto()
    """Increment of the total payload size in bytes (int)."""
    LINKS_OBSERVED = auto()
    """A link ID observed in the data (int)."""
    RDH_VERSION = auto()
    """The detected RDH version (int)."""
    DATA_FORMAT = auto()
    """A data format observed in the data (int)."""
    HBFS_SEEN = auto()
    """Increment of the total HBFs seen (int)."""
    LAYER_STAVE_SEEN = auto()
    """A (layer, stave) pair observed in the data."""


@dataclass(frozen=True)
class Stat:
    """A statistic update sent to the controller."""

    kind: StatKind
    value: Any = None


def format_payload_size(size: int) -> str:
    """Format a byte count as B, KiB, MiB or GiB with the thresholds of the report."""
    if size <= 1024:
        return f"{size} B"
    if size <= 1048576:
        return f"{size / 1024:.3f} KiB"
    if size <= 1073741824:
        return f"{size / 1048576:.3f} MiB"
    return f"{size / 1073741824:.3f} GiB"


def summarize_filtered_links(link_to_filter: int, links_observed: Iterable[int]) -> StatSummary:
    """Summarise whether the link being filtered for was observed."""
    if link_to_filter in set(links_observed):
        return StatSummary("Link ID", str(link_to_filter), None)
    return StatSummary("Link ID", "<<none>>", f"not found: {link_to_filter}")


class StatsController:
    """Receives :class:`Stat` updates from a queue and builds the summary report.

    Putting ``None`` on the queue ends :meth:`run`.
    """

    def __init__(
        self,
        config: Config,
        recv_stats_queue: "queue.Queue[Stat | None]",
        end_processing_flag: threading.Event,
    ) -> None:
        self.rdhs_seen = 0
        self.rdhs_filtered = 0
        self.payload_size = 0
        self.links_observed: list[int] = []
        self.total_errors = 0
        self.rdh_version = 0
        self.data_formats_observed: list[int] = []
        self.hbfs_seen = 0
        self.fatal_error: str | None = None
        self.layers_staves_seen: list[tuple[int, int]] = []
        self._start = time.monotonic()
        self._max_tolerate_errors = config.max_tolerate_errors
        self._link_to_filter = config.filter_link
        self._view_active = config.view is not None
        self._queue = recv_stats_queue
        self._end_processing_flag = end_processing_flag

    def run(self) -> None:
        """Process updates until ``None`` arrives, then print the report unless a view is active."""
        while True:
            stat = self._queue.get()
            if stat is None:
                if self._view_active:
                    log.info("View active, skipping report summary printout.")
                else:
                    self.build_report().print()
                break
            self.update(stat)

    def update(self, stat: Stat) -> None:
        """Apply one statistic update."""
        kind, value = stat.kind, stat.value
        if kind is StatKind.ERROR:
            self._record_error(value)
        elif kind is StatKind.FATAL:
            if self.fatal_error is not None:
                log.debug("Fatal error already seen, ignoring error: %s", value)
                return
            self._end_processing_flag.set()
            log.error("FATAL: %s\nShutting down...", value)
            self.fatal_error = value
        elif kind is StatKind.RDHS_SEEN:
            self.rdhs_seen += value
        elif kind is StatKind.RDHS_FILTERED:
            self.rdhs_filtered += value
        elif kind is StatKind.PAYLOAD_SIZE:
            self.payload_size += value
        elif kind is StatKind.LINKS_OBSERVED:
            self.links_observed.append(value)
        elif kind is StatKind.RDH_VERSION:
            self.rdh_version = value
        elif kind is StatKind.DATA_FORMAT:
            if value not in self.data_formats_observed:
                self.data_formats_observed.append(value)
        elif kind is StatKind.HBFS_SEEN:
            self.hbfs_seen += value
        elif kind is StatKind.LAYER_STAVE_SEEN:
            pair = tuple(value)
            if pair not in self.layers_staves_seen:
                self.layers_staves_seen.append(pair)

    def _record_error(self, message: str) -> None:
        if self.fatal_error is not None:
            log.debug("Fatal error already seen, ignoring error: %s", message)
            return
        if self._max_tolerate_errors == 0:
            log.error("%s", message)
            self.total_errors += 1
            return
        if self.total_errors >= self._max_tolerate_errors:
            return
        log.error("%s", message)
        self.total_errors += 1
        log.info("Error count: %d", self.total_errors)
        if self.total_errors == self._max_tolerate_errors:
            log.info("Errors reached maximum tolerated errors, exiting...")
            self._end_processing_flag.set()

    def build_report(self) -> Report:
        """Build the summary report from the statistics collected so far."""
        report = Report(processing_time=time.monotonic() - self._start)
        if self.fatal_error is not None:
            report.add_fatal_error(self.fatal_error)

        report.add_stat(StatSummary("Total Errors", str(self.total_errors), None))
        report.add_stat(StatSummary("Total RDHs", str(self.rdhs_seen), None))
        links = ", ".join(str(link) for link in sorted(self.links_observed))
        report.add_stat(StatSummary("Links observed during scan", links, None))

        layers_staves = ", ".join(
            f"L{layer}_{stave}" for layer, stave in sorted(self.layers_staves_seen)
        )
        payload = format_payload_size(self.payload_size)

        if self._link_to_filter is None:
            report.add_stat(StatSummary("Total HBFs", str(self.hbfs_seen), None))
            report.add_stat(StatSummary("Layers and Staves seen", layers_staves, None))
            report.add_stat(StatSummary("Total Payload Size", payload, None))
        else:
            report.add_filter_stats(
                [
                    StatSummary("RDHs", str(self.rdhs_filtered), None),
                    StatSummary("HBFs", str(self.hbfs_seen), None),
                    StatSummary("Total Payload Size", payload, None),
                    summarize_filtered_links(self._link_to_filter, self.links_observed),
                    StatSummary("Layers and Staves seen", layers_staves, None),
                ]
            )

        report.add_detected_attribute("RDH Version", str(self.rdh_version))
        formats = list(self.data_formats_observed)
        if len(formats) > 1:
            formats.sort()
            log.error("Multiple data formats observed: %s", formats)
        report.add_detected_attribute("Data Format", ", ".join(str(f) for f in formats))
        return report


def init_stats_controller(
    config: Config,
) -> tuple[threading.Thread, "queue.Queue[Stat | None]", threading.Event]:
    """Start a StatsController in a thread; return the thread, its queue and the stop flag."""
    stats_queue: "queue.Queue[Stat | None]" = queue.Queue()
    stop_flag = threading.Event()
    controller = StatsController(config, stats_queue, stop_flag)
    thread = threading.Thread(target=controller.run, name="stats_thread", daemon=True)
    thread.start()
    return thread, stats_queue, stop_flag