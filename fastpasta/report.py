"""The summary report printed when processing ends."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from typing import Iterable, Sequence, TextIO

from tabulate import tabulate
from termcolor import colored

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


@dataclass
class StatSummary:
    """One row of a statistics table: name, value and optional notes."""

    statistic: str = ""
    value: str = ""
    notes: str | None = ""

    def __post_init__(self) -> None:
        if self.notes is None:
            self.notes = ""


@dataclass
class _DetectedAttribute:
    attribute: str
    detected: str


def _visible_len(text: str) -> int:
    return len(_ANSI.sub("", text))


def _ljust(text: str, width: int) -> str:
    return text + " " * (width - _visible_len(text))


def _center(text: str, width: int) -> str:
    pad = width - _visible_len(text)
    left = pad // 2
    return " " * left + text + " " * (pad - left)


def _paint(text: str, color: str | None = None, attrs: list[str] | None = None) -> str:
    return colored(text, color, attrs=attrs)


def _format_duration(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:.3f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.3f}ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:.3f}µs"
    return f"{seconds * 1e9:.0f}ns"


def _sub_table(
    title: str,
    title_color: str,
    headers: Sequence[str],
    rows: Iterable[Sequence[str]],
    column_colors: Sequence[str],
) -> list[str]:
    """Render a titled table as lines of equal visible width."""
    header_cells = [
        _paint(header.upper(), color) for header, color in zip(headers, column_colors)
    ]
    body = [
        [_paint(str(cell), color) for cell, color in zip(row, column_colors)]
        for row in rows
    ]
    text = tabulate(body, headers=header_cells, tablefmt="simple", disable_numparse=True)
    lines = text.splitlines()
    if len(lines) > 1:
        lines[1] = lines[1].replace("-", "═")
    title_text = _paint(title.upper(), title_color)
    width = max([_visible_len(title_text), *(_visible_len(line) for line in lines)])
    return [_center(title_text, width)] + [_ljust(line, width) for line in lines]


def _side_by_side(blocks: Sequence[list[str]]) -> list[str]:
    height = max(len(block) for block in blocks)
    widths = [max((_visible_len(line) for line in block), default=0) for block in blocks]
    padded = [block + [""] * (height - len(block)) for block in blocks]
    return [
        " │ ".join(_ljust(line, width) for line, width in zip(row, widths))
        for row in zip(*padded)
    ]


@dataclass
class Report:
    """Collects statistics and renders them as a boxed report."""

    processing_time: float = 0.0
    stats: list[StatSummary] = field(default_factory=list)
    _filter_stats: list[StatSummary] | None = field(default=None, repr=False)
    _detected_attributes: list[_DetectedAttribute] = field(
        default_factory=list, repr=False
    )
    _fatal_error: str | None = field(default=None, repr=False)

    def add_stat(self, stat: StatSummary) -> None:
        """Add a row to the global statistics."""
        self.stats.append(stat)

    def add_filter_stats(self, stats: Iterable[StatSummary]) -> None:
        """Set the rows of the filter statistics table."""
        self._filter_stats = list(stats)

    def add_detected_attribute(self, attribute: str, detected: str) -> None:
        """Add a row to the detected attributes table."""
        self._detected_attributes.append(_DetectedAttribute(attribute, detected))

    def add_fatal_error(self, error: str) -> None:
        """Mark the report as ending on a fatal error."""
        self._fatal_error = error

    @property
    def fatal_error(self) -> str | None:
        """The fatal error recorded, if any."""
        return self._fatal_error

    def render(self) -> str:
        """Build the full report text."""
        global_lines = _sub_table(
            "Global Stats",
            "light_yellow",
            ("statistic", "value", "notes"),
            ((s.statistic, s.value, s.notes) for s in self.stats),
            ("blue", "light_cyan", "yellow"),
        )
        blocks = [
            _sub_table(
                "Detected Attributes",
                "yellow",
                ("attribute", "detected"),
                ((a.attribute, a.detected) for a in self._detected_attributes),
                ("yellow", "yellow"),
            )
        ]
        if self._filter_stats is not None:
            blocks.append(
                _sub_table(
                    "Filter Stats",
                    "light_magenta",
                    ("statistic", "value", "notes"),
                    ((s.statistic, s.value, s.notes) for s in self._filter_stats),
                    ("light_magenta",) * 3,
                )
            )
        row_lines = _side_by_side(blocks)

        report_title = _paint("REPORT", "green")
        footer = _paint(
            f"Processed in {_format_duration(self.processing_time)}", attrs=["dark"]
        )
        fatal_title = (
            _paint("FATAL ERROR - EARLY TERMINATION", "red")
            if self._fatal_error is not None
            else None
        )
        candidates = [*global_lines, *row_lines, report_title, footer]
        if fatal_title is not None:
            candidates.append(fatal_title)
        width = max(_visible_len(line) for line in candidates)

        def boxed(text: str) -> str:
            return f"│ {_ljust(text, width)} │"

        def separator(char: str) -> str:
            return "├" + char * (width + 2) + "┤"

        lines = ["┌" + "─" * (width + 2) + "┐"]
        if fatal_title is not None:
            lines.append(boxed(_center(fatal_title, width)))
            lines.append(separator("─"))
        lines.append(boxed(_center(report_title, width)))
        lines.append(separator("═"))
        lines.extend(boxed(line) for line in global_lines)
        lines.append(separator("─"))
        lines.extend(boxed(line) for line in row_lines)
        lines.append(separator("─"))
        lines.append(boxed(_center(footer, width)))
        lines.append("└" + "─" * (width + 2) + "┘")
        return "\n".join(lines)

    def print(self, file: TextIO | None = None) -> None:
        """Write the report to ``file`` (standard error by default)."""
        stream = sys.stderr if file is None else file
        print(self.render(), file=stream)