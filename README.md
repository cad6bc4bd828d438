# fastpasta

Building blocks for scanning raw binary readout data. The input is a stream
of CRU data packets (CDPs): a 64-byte RDH header followed by its payload. The
package reads packets from a file or standard input, tracks the byte position
of each header, can keep only the packets of one link, collects statistics
from a queue of messages and prints a summary report.

## Installation

Python 3.10 or later. Runtime dependencies are `tabulate` and `termcolor`;
the `test` extra adds `pytest`.

## Modules

- `fastpasta.config` – `Config` is a frozen dataclass holding `input_file`,
  `check`, `view`, `verbosity` (default 1), `max_tolerate_errors` (default 0,
  meaning no limit), `filter_link` and `output`. `parse_args(argv)` builds one
  from command-line style arguments:

  ```
  [INPUT DATA] [check {all,sanity} [ITS] | view {rdh,hbf}]
  -v/--verbosity N   -e/--max-errors N   -f/--filter-link N   -o/--output PATH
  ```

  The target system is matched case-insensitively, and `--output` requires
  `--filter-link`; bad usage exits with status 2. `Config.output_mode()`
  returns a `DataOutputMode`: `STDOUT` when the output is the word `stdout`
  or when nothing is set, `FILE` for any other output path, and `NONE` when a
  check or view is requested without an output. Checks are `Check(kind,
  target)` with a `CheckKind` (`ALL`, `SANITY`) and an optional `System`
  (`ITS`); views are `View.RDH` and `View.HBF`.
- `fastpasta.data_wrapper` – `CdpChunk`, an ordered container of
  `(rdh, payload, mem_pos)` triples with `push`, `push_tuple`, `clear`,
  `len()`, iteration, and the read-only `rdhs` and `mem_positions`.
- `fastpasta.mem_pos_tracker` – `MemPosTracker`. `next(rdh_offset)` adds the
  offset to `memory_address_bytes` and returns the number of bytes left after
  the 64-byte header; an offset below 64 raises `ValueError`.
- `fastpasta.readers` – `FileReader(path, capacity)` (a context manager with
  `read`, `seek_relative` and `close`) and `StreamSkipReader(stream)` for
  non-seekable streams, standard input by default. The stream reader skips
  forward by reading and discarding bytes, raises `EOFError` if the stream
  ends first, and refuses to move backwards.
- `fastpasta.input_scanner` – `InputScanner(config, reader, stats_sender,
  rdh_type, tracker=None, initial_rdh0=None)` loads headers
  (`load_rdh_cru`), payloads (`load_payload_raw`) and whole packets
  (`load_cdp`, returning a `CdpWrapper(rdh, payload, mem_pos)`). With a link
  filter set, headers of other links are skipped. Every header seen, every
  new link, every filtered header and every payload size is put on the stats
  queue as a `Stat`. `sanity_check_offset_next` reports an error and raises
  `InvalidDataError` when a header's offset to next is below 64 bytes or more
  than 20 KB past the header.
- `fastpasta.reader` – `init_reader(config)` opens the input file, or
  standard input when none is configured (logging an error if it is a
  terminal). `get_chunk(scanner, chunk_size)` reads up to `chunk_size`
  packets, stopping early on invalid data or end of input, and raises
  `EOFError` if none could be read. `spawn_reader(stop_event, scanner)`
  starts a thread that puts chunks of up to 100 packets on a bounded queue
  and puts `None` at the end; it returns the thread and the queue.
- `fastpasta.stats_controller` – `StatsController(config, queue,
  stop_event)` takes `Stat(kind, value)` messages (`StatKind`: `FATAL`,
  `ERROR`, `RDHS_SEEN`, `RDHS_FILTERED`, `PAYLOAD_SIZE`, `LINKS_OBSERVED`,
  `RDH_VERSION`, `DATA_FORMAT`, `HBFS_SEEN`, `LAYER_STAVE_SEEN`). A fatal
  error, or reaching the configured error limit, sets the stop event; errors
  after a fatal error are ignored. `run()` processes messages until `None`
  arrives and then prints the report, unless a view is configured.
  `build_report()` returns the `Report`. `init_stats_controller(config)`
  starts a controller in its own thread and returns the thread, its queue and
  the stop event. `format_payload_size(size)` and
  `summarize_filtered_links(link_to_filter, links_observed)` format report
  rows.
- `fastpasta.report` – `StatSummary(statistic, value, notes)` and `Report`,
  with `add_stat`, `add_filter_stats`, `add_detected_attribute`,
  `add_fatal_error`, `render()` returning the boxed, coloured text, and
  `print(file)` writing it (to standard error by default).
- `fastpasta.logging_setup` – `init_error_logger(config)` sends the
  package's log messages to standard error at the configured verbosity
  (0–4: error, warning, info, debug, `TRACE`) and returns the package logger;
  `exit_success()` logs a successful exit and returns 0.

## Example

```python
from fastpasta.data_wrapper import CdpChunk
from fastpasta.mem_pos_tracker import MemPosTracker
from fastpasta.report import Report, StatSummary
from fastpasta.stats_controller import format_payload_size

tracker = MemPosTracker()
tracker.next(64)                      # returns 0
print(tracker.memory_address_bytes)   # 64

chunk = CdpChunk()
chunk.push("header", b"\x00" * 10, 0)
for rdh, payload, position in chunk:
    print(rdh, len(payload), position)

report = Report(processing_time=0.5)
report.add_stat(StatSummary("Total RDHs", "725800"))
report.add_stat(StatSummary("Total Payload Size", format_payload_size(2048)))
print(report.render())
```

## Report contents

The report lists the total errors, the total headers and the links observed.
Without a link filter it also shows heartbeat frames, layers and staves seen
and the total payload size (B, KiB, MiB or GiB); with a filter, these figures
go to a separate *Filter Stats* table that also says whether the filtered
link was found. The header version and data formats observed appear under
*Detected Attributes*, and a fatal error is announced at the top.

## What the package does not do

- It installs no command. `parse_args` builds a `Config`, but no function
  ties the pieces together into a program run.
- It does not decode RDH headers. `InputScanner` is given an `rdh_type` whose
  `load(reader)` and `load_from_rdh0(reader, rdh0)` class methods return
  headers exposing `link_id`, `offset_to_next` and `payload_size`.
- The `check` and `view` options are parsed only: no validation checks are
  performed and no views are printed.
- Filtered data is not written out to a file or to standard output.