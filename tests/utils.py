"""Utilities / Helpers for writing tests."""
from typing import Dict
from typing import Iterable
from typing import List
from typing import Tuple

from heapref import GlobalRoot
from heapref import Goroutine
from heapref import HeapObject
from heapref import Pointer
from heapref._graph import Root


class MockHeapGraph:
    """An in-memory graph provider, built up object by object."""

    def __init__(self) -> None:
        self._objects: Dict[int, HeapObject] = {}
        self._pointers: Dict[int, List[Pointer]] = {}
        self._field_names: Dict[Tuple[int, int], str] = {}
        self._globals: List[GlobalRoot] = []
        self._goroutines: List[Goroutine] = []
        self._root_pointers: Dict[Root, List[Pointer]] = {}

    def add_object(self, address: int, size: int, type_name: str = "main.T"):
        obj = HeapObject(address=address, size=size, type_name=type_name)
        self._objects[address] = obj
        self._pointers.setdefault(address, [])
        return obj

    def add_pointer(self, source: HeapObject, target: HeapObject, field: str = ""):
        offset = len(self._pointers[source.address]) * 8
        self._pointers[source.address].append(Pointer(offset=offset, target=target))
        if field:
            self._field_names[(source.address, offset)] = field

    def add_global(self, name: str, address: int, type_name: str = ""):
        root = GlobalRoot(name=name, address=address, type_name=type_name)
        self._globals.append(root)
        self._root_pointers.setdefault(root, [])
        return root

    def add_goroutine(self, address: int, size: int = 0):
        goroutine = Goroutine(address=address, size=size)
        self._goroutines.append(goroutine)
        self._root_pointers.setdefault(goroutine, [])
        return goroutine

    def add_root_pointer(self, root: Root, target: HeapObject, name: str = ""):
        pointers = self._root_pointers[root]
        pointers.append(Pointer(offset=len(pointers) * 8, target=target, name=name))

    def objects(self) -> Iterable[HeapObject]:
        return list(self._objects.values())

    def pointers(self, obj: HeapObject) -> Iterable[Pointer]:
        return list(self._pointers.get(obj.address, []))

    def globals(self) -> Iterable[GlobalRoot]:
        return list(self._globals)

    def root_pointers(self, root: Root) -> Iterable[Pointer]:
        return list(self._root_pointers.get(root, []))

    def goroutines(self) -> Iterable[Goroutine]:
        return list(self._goroutines)

    def field_name(self, obj: HeapObject, offset: int) -> str:
        return self._field_names.get((obj.address, offset), "")

    def type_field_name(self, type_name: str, offset: int) -> str:
        return ""


def make_shared_graph() -> MockHeapGraph:
    """Two globals reaching the same object through one hop each.

    R1 -> A(10) -> C(100) and R2 -> B(5) -> C(100).
    """
    graph = MockHeapGraph()
    a = graph.add_object(0x1000, 10, "main.A")
    b = graph.add_object(0x2000, 5, "main.B")
    c = graph.add_object(0x3000, 100, "main.C")
    graph.add_pointer(a, c, "c")
    graph.add_pointer(b, c, "c")
    r1 = graph.add_global("main.r1", 0x100)
    r2 = graph.add_global("main.r2", 0x200)
    graph.add_root_pointer(r1, a)
    graph.add_root_pointer(r2, b)
    return graph
