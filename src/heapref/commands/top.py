import argparse

from heapref._size import parse_size
from heapref.commands.common import add_snapshot_argument
from heapref.commands.common import read_snapshot
from heapref.reporters.top import TopReporter


def byte_size(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"{value} is an invalid size: {e}")


class TopCommand:
    """Show which root reference paths hold the objects of a given type"""

    def prepare_parser(self, parser: argparse.ArgumentParser) -> None:
        add_snapshot_argument(parser)
        parser.add_argument(
            "--top",
            help="Only show the N biggest groups (0 or less shows all)",
            type=int,
            default=0,
        )
        parser.add_argument(
            "--min-total",
            help="Hide groups retaining less than this size, e.g. 512KB",
            type=byte_size,
            default=0,
        )
        parser.add_argument("type", help="Type name of the objects to group")

    def run(self, args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
        reader, graph = read_snapshot(args.snapshot)
        reporter = TopReporter.from_graph(
            reader,
            graph,
            args.type,
            top=args.top,
            min_total=args.min_total,
        )
        reporter.render()
