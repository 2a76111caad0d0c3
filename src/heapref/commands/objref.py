import argparse
import sys
from pathlib import Path

from rich import print as rprint

from heapref._errors import HeaprefCommandError
from heapref._size import size_fmt
from heapref.commands.common import add_snapshot_argument
from heapref.commands.common import read_snapshot
from heapref.reporters.objref import ObjRefReporter


class ObjrefCommand:
    """Write the reference paths retaining the most memory to a file"""

    def prepare_parser(self, parser: argparse.ArgumentParser) -> None:
        add_snapshot_argument(parser)
        parser.add_argument(
            "--minwidth",
            help=(
                "Omit reference paths retaining less than this percentage "
                "of the total (defaults to 0, print everything)"
            ),
            type=float,
            default=0.0,
        )
        parser.add_argument(
            "--printaddr",
            help="Append the address of each object to its path segment",
            action="store_true",
            default=False,
        )
        parser.add_argument(
            "-f",
            "--force",
            help="If the output file already exists, overwrite it",
            action="store_true",
            default=False,
        )
        parser.add_argument("output", help="File to write the reference paths to")

    def run(self, args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
        if args.minwidth < 0:
            parser.error("The --minwidth argument must not be negative")

        output_file = Path(args.output)
        if not args.force and output_file.exists():
            raise HeaprefCommandError(
                f"File already exists, will not overwrite: {output_file}",
                exit_code=1,
            )

        _, graph = read_snapshot(args.snapshot)
        rprint(f"Sum object size {size_fmt(graph.total_object_size)}", file=sys.stderr)

        graph.build_forest()
        total = graph.compute_retained_sizes()
        rprint(f"Total size {size_fmt(total)}", file=sys.stderr)

        reporter = ObjRefReporter.from_graph(
            graph, min_width=args.minwidth, print_addr=args.printaddr
        )
        try:
            with open(output_file.expanduser(), "w", encoding="utf-8") as f:
                printed = reporter.render(f)
        except OSError as e:
            raise HeaprefCommandError(
                f"Failed to write {output_file}\nReason: {e}", exit_code=1
            ) from e

        rprint(f"Printed size: {size_fmt(printed)}", file=sys.stderr)
        print(f'Wrote the object reference to "{output_file}"', file=sys.stderr)
