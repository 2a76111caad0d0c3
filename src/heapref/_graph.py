"""Records and protocol describing the heap graph a report is built from.

Reports never look at snapshot bytes directly: everything they know about
the inspected process comes through a `GraphProvider`. Enumerations are
plain iterables, so a consumer that has seen enough simply stops iterating.
"""
from dataclasses import dataclass
from typing import Iterable
from typing import Protocol
from typing import Union


@dataclass(frozen=True)
class HeapObject:
    """A live heap allocation."""

    address: int
    size: int
    type_name: str


@dataclass(frozen=True)
class Pointer:
    """An outgoing pointer found at ``offset`` inside its source.

    ``target_offset`` is the offset inside ``target`` the pointer refers
    to; interior pointers are attributed to the whole target object.
    ``name`` is set when the slot holding the pointer is known without
    any type layout, like a variable living on a goroutine stack.
    """

    offset: int
    target: HeapObject
    target_offset: int = 0
    name: str = ""


@dataclass(frozen=True)
class GlobalRoot:
    """A global variable of the inspected program."""

    name: str
    address: int
    type_name: str


@dataclass(frozen=True)
class Goroutine:
    """A goroutine whose stack may keep heap objects alive."""

    address: int
    size: int = 0


Root = Union[GlobalRoot, Goroutine]


class GraphProvider(Protocol):
    def objects(self) -> Iterable[HeapObject]:
        ...

    def pointers(self, obj: HeapObject) -> Iterable[Pointer]:
        ...

    def globals(self) -> Iterable[GlobalRoot]:
        ...

    def root_pointers(self, root: Root) -> Iterable[Pointer]:
        ...

    def goroutines(self) -> Iterable[Goroutine]:
        ...

    def field_name(self, obj: HeapObject, offset: int) -> str:
        ...

    def type_field_name(self, type_name: str, offset: int) -> str:
        ...
