from collections import deque
from dataclasses import dataclass
from typing import IO
from typing import Deque
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

from rich import print as rprint
from rich.markup import escape
from rich.table import Column
from rich.table import Table

from heapref._graph import GraphProvider
from heapref._objgraph import ObjectGraph
from heapref._objgraph import ObjNode
from heapref._size import size_fmt
from heapref.reporters.common import gen_ref_path

UNREACHABLE = "<unreachable>"

# The root that reaches an address first, and the link leaving that root.
_Owner = Tuple[ObjNode, Optional[str]]


@dataclass
class Bucket:
    count: int
    total: int
    info: str


def find_root_owners(graph: ObjectGraph) -> Dict[int, _Owner]:
    """Map every reachable address to the root that reaches it first.

    Globals are searched together, breadth first, over the ingested (not
    deduplicated) edges. Goroutines then only claim what no global reaches,
    matching the ownership of the reference forest.
    """
    owners: Dict[int, _Owner] = {}
    _claim_reachable(graph, graph.global_roots, owners)
    _claim_reachable(graph, graph.goroutine_roots, owners)
    return owners


def _claim_reachable(
    graph: ObjectGraph, roots: List[ObjNode], owners: Dict[int, _Owner]
) -> None:
    queue: Deque[int] = deque()
    for root in roots:
        if root.address in owners:
            continue
        owners[root.address] = (root, None)
        queue.append(root.address)

    while queue:
        address = queue.popleft()
        root, link = owners[address]
        leaving_root = address == root.address
        for ref in graph.nodes[address].refs:
            target = ref.node.address
            if target in owners:
                continue
            owners[target] = (root, ref.link if leaving_root else link)
            queue.append(target)


def _signature(owner: Optional[_Owner]) -> str:
    if owner is None:
        return UNREACHABLE
    root, link = owner
    path = [root.name]
    if link:
        path.append(link)
    return gen_ref_path(path)


class TopReporter:
    """Rank the objects of one type by the root reference path holding them."""

    def __init__(self, object_type: str, buckets: List[Bucket]) -> None:
        self.object_type = object_type
        self.buckets = buckets

    @classmethod
    def from_graph(
        cls,
        provider: GraphProvider,
        graph: ObjectGraph,
        object_type: str,
        *,
        top: int = 0,
        min_total: int = 0,
    ) -> "TopReporter":
        owners = find_root_owners(graph)

        buckets_by_info: Dict[str, Bucket] = {}
        for obj in provider.objects():
            if obj.type_name != object_type:
                continue
            info = _signature(owners.get(obj.address))
            bucket = buckets_by_info.setdefault(info, Bucket(0, 0, info))
            bucket.count += 1
            bucket.total += obj.size

        buckets = sorted(
            (b for b in buckets_by_info.values() if b.total >= min_total),
            key=lambda b: b.total,
            reverse=True,
        )
        if top > 0:
            buckets = buckets[:top]
        return cls(object_type, buckets)

    def render(self, file: Optional[IO[str]] = None) -> None:
        table = Table(
            Column("Count", justify="right"),
            Column("Total", justify="right"),
            Column("Info"),
            box=None,
        )
        for bucket in self.buckets:
            table.add_row(
                str(bucket.count), size_fmt(bucket.total), escape(bucket.info)
            )

        rprint(
            escape(f"Object type : [{self.object_type}], reference path info"),
            file=file,
        )
        rprint(table, file=file)
