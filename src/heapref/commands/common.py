import argparse
import os
from typing import Optional
from typing import Protocol
from typing import Tuple

from heapref._errors import HeaprefCommandError
from heapref._errors import SnapshotError
from heapref._objgraph import ObjectGraph
from heapref._snapshot import SnapshotReader

SNAPSHOT_ENV_VAR = "HEAPREF_SNAPSHOT"


class Command(Protocol):
    def prepare_parser(self, parser: argparse.ArgumentParser) -> None:
        ...

    def run(self, args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
        ...


def add_snapshot_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-s",
        "--snapshot",
        help=(
            "Heap graph snapshot to analyze "
            f"(defaults to the {SNAPSHOT_ENV_VAR} environment variable)"
        ),
        default=None,
    )


def read_snapshot(snapshot: Optional[str]) -> Tuple[SnapshotReader, ObjectGraph]:
    """Load a snapshot and ingest it into a fresh object graph."""
    path = snapshot or os.environ.get(SNAPSHOT_ENV_VAR)
    if not path:
        raise HeaprefCommandError(
            f"No snapshot given: use --snapshot or set {SNAPSHOT_ENV_VAR}",
            exit_code=1,
        )
    if not os.path.isfile(path):
        raise HeaprefCommandError(f"No such file: {path}", exit_code=1)

    try:
        reader = SnapshotReader(path)
    except SnapshotError as e:
        raise HeaprefCommandError(
            f"Failed to read heap graph in {path}\nReason: {e}",
            exit_code=1,
        ) from e
    return reader, ObjectGraph.from_provider(reader)
