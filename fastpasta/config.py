"""Command line configuration: options, subcommands and the derived output mode."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence


class DataOutputMode(Enum):
    """Where filtered raw data is written."""

    FILE = "file"
    STDOUT = "stdout"
    NONE = "none"


class System(Enum):
    """Detector systems that checks can target."""

    ITS = "ITS"


class CheckKind(Enum):
    """Which family of checks to run."""

    ALL = "all"
    SANITY = "sanity"


@dataclass(frozen=True)
class Check:
    """A requested validation: its kind and an optional target system."""

    kind: CheckKind
    target: System | None = None


class View(Enum):
    """Data views that can be generated."""

    RDH = "rdh"
    HBF = "hbf"


@dataclass(frozen=True)
class Config:
    """Parsed program configuration."""

    input_file: Path | None = None
    check: Check | None = None
    view: View | None = None
    verbosity: int = 1
    max_tolerate_errors: int = 0
    filter_link: int | None = None
    output: Path | None = None

    def output_mode(self) -> DataOutputMode:
        """Decide where data output goes, from the output option and the command."""
        if self.output is not None:
            if str(self.output) == "stdout":
                return DataOutputMode.STDOUT
            return DataOutputMode.FILE
        if self.check is not None or self.view is not None:
            return DataOutputMode.NONE
        return DataOutputMode.STDOUT


_COMMANDS = ("check", "view")

_DESCRIPTION = """\
Usage flow:  [INPUT] -> [FILTER] -> [VALIDATE/VIEW/OUTPUT]
                          ^^^                 ^^^
                        Optional            Optional
Examples:
    1. Read from file -> filter by link 0 -> validate with all checks enabled
        $ fastpasta input.raw --filter-link 0 check all
    2. Read decompressed data from stdin -> filter link 3 -> see a formatted view of RDHs
        $ lz4 -d input.raw -c | fastpasta --filter-link 3 | fastpasta view rdh

Commands:
    check {all,sanity} [ITS]   enable validation checks, optionally for a target system
    view {rdh,hbf}             print formatted RDHs or HBFs to stdout
"""


def _unsigned(bits: int):
    limit = (1 << bits) - 1

    def convert(text: str) -> int:
        try:
            value = int(text, 10)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from None
        if not 0 <= value <= limit:
            raise argparse.ArgumentTypeError(f"{value} is out of range 0..{limit}")
        return value

    return convert


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fastpasta",
        description=_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "words",
        nargs="*",
        metavar="[INPUT DATA] [COMMAND ...]",
        help="input file (default: stdin) followed by an optional command",
    )
    parser.add_argument(
        "-v",
        "--verbosity",
        type=_unsigned(8),
        default=1,
        help="verbosity level 0-4 (errors, warnings, info, debug, trace)",
    )
    parser.add_argument(
        "-e",
        "--max-errors",
        dest="max_tolerate_errors",
        type=_unsigned(32),
        default=0,
        help="max errors to tolerate before exiting, 0 means no limit",
    )
    parser.add_argument(
        "-f",
        "--filter-link",
        type=_unsigned(8),
        default=None,
        help="CRU link ID to filter by",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="output raw data (default: stdout), requires a link to filter by",
    )
    return parser


def _parse_command(
    parser: argparse.ArgumentParser, words: list[str]
) -> tuple[Check | None, View | None]:
    if not words:
        return None, None
    command, *args = words
    if command not in _COMMANDS:
        parser.error(f"unexpected argument {command!r}")
    if not args:
        parser.error(f"the '{command}' command requires a subcommand")
    sub, *extra = args
    if command == "check":
        try:
            kind = CheckKind(sub)
        except ValueError:
            parser.error(f"invalid check {sub!r} (choose from 'all', 'sanity')")
        target = None
        if extra:
            name, *extra = extra
            systems = {system.value.lower(): system for system in System}
            target = systems.get(name.lower())
            if target is None:
                parser.error(f"invalid target system {name!r}")
        if extra:
            parser.error(f"unexpected arguments: {' '.join(extra)}")
        return Check(kind, target), None
    try:
        view = View(sub)
    except ValueError:
        parser.error(f"invalid view {sub!r} (choose from 'rdh', 'hbf')")
    if extra:
        parser.error(f"unexpected arguments: {' '.join(extra)}")
    return None, view


def parse_args(argv: Sequence[str] | None = None) -> Config:
    """Parse command line arguments into a Config; exits with status 2 on bad usage."""
    parser = _build_parser()
    namespace = parser.parse_intermixed_args(argv)
    words = list(namespace.words)
    input_file = None
    if words and words[0] not in _COMMANDS:
        input_file = Path(words.pop(0))
    check, view = _parse_command(parser, words)
    if namespace.output is not None and namespace.filter_link is None:
        parser.error("the argument --output requires --filter-link")
    return Config(
        input_file=input_file,
        check=check,
        view=view,
        verbosity=namespace.verbosity,
        max_tolerate_errors=namespace.max_tolerate_errors,
        filter_link=namespace.filter_link,
        output=namespace.output,
    )