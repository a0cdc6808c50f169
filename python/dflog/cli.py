"""dflog command-line tool."""

from __future__ import annotations

import argparse
import logging
import sys

from .errors import FormatError
from .faults import CollectingFaultSink
from .reader import SNIFF_LINE_LIMIT, LogReader, LogStream


def _stream_options(args: argparse.Namespace) -> dict:
    return dict(apply_scale=args.scale, names=args.type or None,
                sniff_limit=args.sniff_limit)


def cmd_dump(args: argparse.Namespace) -> None:
    """Dump a log file to stdout."""
    with LogReader(args.file, **_stream_options(args)) as reader:
        for msg in reader.messages():
            print(msg)


def cmd_formats(args: argparse.Namespace) -> None:
    """Print every format declared in a log file."""
    with LogReader(args.file, **_stream_options(args)) as reader:
        for _ in reader.messages():
            pass
        for fmt in reader.registry:
            print(f"[{fmt.type_id:3d}] {fmt.name}  format={fmt.format}  length={fmt.length}")
            for i, col in enumerate(fmt.columns):
                code = fmt.code_at(i)
                print(f"        {col:20s} type={code}")
            print()


def cmd_info(args: argparse.Namespace) -> None:
    """Print summary info about a log file."""
    faults = CollectingFaultSink()
    counts: dict[str, int] = {}

    with LogReader(args.file, fault_sink=faults,
                   **_stream_options(args)) as reader:
        for msg in reader.messages():
            counts[msg.name] = counts.get(msg.name, 0) + 1
        stream = reader.stream
        registry = reader.registry

    lines = stream.lines_read if stream else 0
    print(f"File:       {args.file}")
    print(f"Lines:      {lines:,}")
    print(f"Messages:   {sum(counts.values()):,}")
    print(f"Malformed:  {len(faults):,}")

    print(f"\nFormats ({len(registry)}):")
    print(f"  {'ID':>4s}  {'Name':<8s}  {'Count':>8s}  {'Format':<16s}  Columns")
    for fmt in registry:
        count = counts.get(fmt.name, 0)
        print(f"  {fmt.type_id:4d}  {fmt.name:<8s}  {count:8,}  {fmt.format:<16s}  "
              f"{', '.join(fmt.columns)}")


def cmd_live(args: argparse.Namespace) -> None:
    """Live decode from a serial port or TCP socket."""
    if args.serial:
        from .sources import SerialLineSource
        source = SerialLineSource(args.serial, baudrate=args.baud)
    elif args.tcp:
        from .sources import TCPLineSource
        host, port = args.tcp.rsplit(":", 1)
        source = TCPLineSource(host, int(port))
    else:
        print("Error: specify --serial or --tcp", file=sys.stderr)
        sys.exit(1)

    options = _stream_options(args)
    if args.no_sniff:
        # A live feed may be joined after the FMT records went past
        options["sniff_limit"] = sys.maxsize

    try:
        for msg in LogStream(source, **options):
            print(msg)
    except KeyboardInterrupt:
        pass
    finally:
        source.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="dflog", description="dataflash text log tool")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log schema updates and debug output")
    sub = parser.add_subparsers(dest="command")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--type", action="append", metavar="NAME",
                        help="Only output messages of this format (repeatable)")
    common.add_argument("--scale", action="store_true",
                        help="Multiply scaled float fields by their scale factor")
    common.add_argument("--sniff-limit", type=int, default=SNIFF_LINE_LIMIT,
                        help="Lines allowed before the first FMT record")

    # dump
    p_dump = sub.add_parser("dump", parents=[common], help="Dump a log file")
    p_dump.add_argument("file", help="Path to text log file")

    # formats
    p_formats = sub.add_parser("formats", parents=[common],
                               help="Show formats declared in a log file")
    p_formats.add_argument("file", help="Path to text log file")

    # info
    p_info = sub.add_parser("info", parents=[common],
                            help="Show summary info about a log file")
    p_info.add_argument("file", help="Path to text log file")

    # live
    p_live = sub.add_parser("live", parents=[common], help="Live decode from a serial port or socket")
    p_live.add_argument("--serial", help="Serial port (e.g. /dev/ttyACM0)")
    p_live.add_argument("--baud", type=int, default=115200, help="Baud rate")
    p_live.add_argument("--tcp", help="TCP host:port to connect to")
    p_live.add_argument("--no-sniff", action="store_true",
                        help="Do not reject a feed that starts without FMT records")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "dump": cmd_dump,
        "formats": cmd_formats,
        "info": cmd_info,
        "live": cmd_live,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except FormatError as e:
        print(f"Error: {getattr(args, 'file', 'input')}: {e}",
              file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
