from typing import Any


class HeaprefError(Exception):
    """Exceptions raised in this package."""


class HeaprefCommandError(HeaprefError):
    """Exceptions raised from this package's CLI commands."""

    def __init__(self, *args: Any, exit_code: int) -> None:
        super().__init__(*args)
        self.exit_code = exit_code


class SnapshotError(HeaprefError):
    """The heap graph snapshot could not be loaded."""


class ForestInvariantError(HeaprefError):
    """The forest builder was asked to expand a node it never visited.

    This signals a defect in the frontier bookkeeping, not bad input.
    """
