import argparse
import logging
import sys
import textwrap
from typing import List
from typing import Optional

from heapref._errors import ForestInvariantError
from heapref._errors import HeaprefCommandError
from heapref._errors import HeaprefError
from heapref._logging import set_log_level
from heapref._version import __version__

from .common import Command
from .objref import ObjrefCommand
from .top import TopCommand

_COMMANDS: List[Command] = [
    ObjrefCommand(),
    TopCommand(),
]

_EPILOG = textwrap.dedent(
    """\
    Please submit feedback, ideas, and bug reports by filing a new issue
    against the heapref project.
    """
)

_DESCRIPTION = textwrap.dedent(
    """\
    Explain which reference chains retain memory in a heap graph snapshot

        Example:

        $ heapref objref -s heap.json --minwidth 1 objref.txt
        $ heapref top -s heap.json --top 10 main.Request
    """
)


def get_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=_DESCRIPTION,
        prog="heapref",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity. Option is additive and can be specified up to 3 times",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=__version__,
        help="Displays the current version of heapref",
    )

    subparsers = parser.add_subparsers(
        help="Mode of operation",
        dest="command",
        required=True,
    )

    for command in _COMMANDS:
        # Extract the CLI command name from the classes' names
        assert command.__class__.__name__.endswith("Command")
        name = command.__class__.__name__[: -len("Command")].lower()

        command_parser = subparsers.add_parser(
            name, help=command.__doc__, description=command.__doc__, epilog=_EPILOG
        )
        command_parser.set_defaults(entrypoint=command.run)
        command.prepare_parser(command_parser)

    return parser


def determine_logging_level_from_verbosity(
    verbose_level: int,
) -> int:  # pragma: no cover
    if verbose_level == 0:
        return logging.WARNING
    elif verbose_level == 1:
        return logging.INFO
    else:
        return logging.DEBUG


def main(args: Optional[List[str]] = None) -> int:
    if args is None:
        args = sys.argv[1:]

    parser = get_argument_parser()
    arg_values = parser.parse_args(args=args)
    set_log_level(determine_logging_level_from_verbosity(arg_values.verbose))

    try:
        arg_values.entrypoint(arg_values, parser)
    except HeaprefCommandError as e:
        print(e, file=sys.stderr)
        return e.exit_code
    except ForestInvariantError as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return 2
    except HeaprefError as e:
        print(e, file=sys.stderr)
        return 1
    else:
        return 0
