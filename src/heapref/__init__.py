from ._errors import ForestInvariantError
from ._errors import HeaprefError
from ._errors import SnapshotError
from ._graph import GlobalRoot
from ._graph import Goroutine
from ._graph import GraphProvider
from ._graph import HeapObject
from ._graph import Pointer
from ._logging import set_log_level
from ._objgraph import ObjectGraph
from ._objgraph import ObjNode
from ._objgraph import ObjRef
from ._size import parse_size
from ._size import size_fmt
from ._snapshot import SnapshotReader
from ._version import __version__

__all__ = [
    "ForestInvariantError",
    "GlobalRoot",
    "Goroutine",
    "GraphProvider",
    "HeapObject",
    "HeaprefError",
    "ObjNode",
    "ObjRef",
    "ObjectGraph",
    "Pointer",
    "SnapshotError",
    "SnapshotReader",
    "__version__",
    "parse_size",
    "set_log_level",
    "size_fmt",
]
