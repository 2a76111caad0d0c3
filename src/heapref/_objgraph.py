"""Turn a heap graph into a forest where every object is owned exactly once.

Objects are first ingested into an address keyed map of canonical nodes.
The forest is then grown breadth first from the roots, level by level, and
every object is attached under the first frontier node that reaches it:
shallowest root wins, ties go to the earlier root and then to the earlier
edge. Global variables are expanded completely before goroutines, so an
object reachable from both is attributed to the global.

That ownership rule makes retained sizes depend on root order for shared
objects. It is kept on purpose: changing it changes every reported number
of a heap with shared substructures.
"""
import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Dict
from typing import List
from typing import Optional
from typing import Set
from typing import Tuple

from heapref._errors import ForestInvariantError
from heapref._graph import GraphProvider
from heapref._snapshot import UNKNOWN_TYPE_PREFIX

LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class ObjRef:
    """An edge from a parent node, through the field named ``link``."""

    link: str
    node: "ObjNode"


@dataclass(eq=False)
class ObjNode:
    address: int
    name: str
    own_size: int
    refs: List[ObjRef] = field(default_factory=list, repr=False)
    retained_size: int = field(init=False)

    def __post_init__(self) -> None:
        self.retained_size = self.own_size

    def append_child(self, child: "ObjNode", link: str) -> None:
        self.refs.append(ObjRef(link=link, node=child))

    def copy(self) -> "ObjNode":
        """Return a tree copy: same identity and size, no edges."""
        return ObjNode(address=self.address, name=self.name, own_size=self.own_size)


def _is_placeholder(name: str) -> bool:
    return name.startswith(UNKNOWN_TYPE_PREFIX)


def goroutine_name(address: int) -> str:
    return f"go{address:x}"


def calc_tree_size(node: ObjNode) -> int:
    """Fill in ``retained_size`` for every node below ``node``.

    Children are summed before their parents using an explicit stack, so
    arbitrarily deep reference chains do not hit the recursion limit.
    """
    stack: List[Tuple[ObjNode, bool]] = [(node, False)]
    while stack:
        current, children_done = stack.pop()
        if children_done:
            current.retained_size = current.own_size + sum(
                ref.node.retained_size for ref in current.refs
            )
            continue
        stack.append((current, True))
        stack.extend((ref.node, False) for ref in current.refs)
    return node.retained_size


@dataclass
class SizeMismatch:
    address: int
    old_size: int
    new_size: int


class ObjectGraph:
    """Traversal state for a single report.

    Holds the canonical node of every address, the set of addresses already
    claimed by the forest and the forest roots themselves.
    """

    def __init__(self) -> None:
        self.nodes: Dict[int, ObjNode] = {}
        self.visited: Set[int] = set()
        self.roots: List[ObjNode] = []
        self.global_roots: List[ObjNode] = []
        self.goroutine_roots: List[ObjNode] = []
        self.size_mismatches: List[SizeMismatch] = []
        self.total_object_size = 0
        self.total_size: Optional[int] = None

    def find_or_create(
        self, name: str, address: int, size: int
    ) -> Tuple[ObjNode, bool]:
        """Return the canonical node for ``address`` and whether it existed."""
        node = self.nodes.get(address)
        if node is None:
            node = ObjNode(address=address, name=name, own_size=size)
            self.nodes[address] = node
            return node, False

        if node.own_size != size:
            LOGGER.warning(
                "same address: %#x, old size: %d, new size: %d",
                address,
                node.own_size,
                size,
            )
            self.size_mismatches.append(SizeMismatch(address, node.own_size, size))
        if _is_placeholder(node.name) and not _is_placeholder(name):
            node.name = name
        return node, True

    def _add_root(self, node: ObjNode, category: List[ObjNode]) -> ObjNode:
        root = node.copy()
        category.append(root)
        self.roots.append(root)
        self.visited.add(root.address)
        return root

    def add_global_root(self, node: ObjNode) -> ObjNode:
        return self._add_root(node, self.global_roots)

    def add_goroutine_root(self, node: ObjNode) -> ObjNode:
        return self._add_root(node, self.goroutine_roots)

    @classmethod
    def from_provider(cls, provider: GraphProvider) -> "ObjectGraph":
        graph = cls()

        for obj in provider.objects():
            graph.total_object_size += obj.size
            node, _ = graph.find_or_create(obj.type_name, obj.address, obj.size)
            for pointer in provider.pointers(obj):
                target = pointer.target
                child, _ = graph.find_or_create(
                    target.type_name, target.address, target.size
                )
                node.append_child(child, provider.field_name(obj, pointer.offset))

        for root in provider.globals():
            # Globals are not heap allocations, so they own no bytes.
            node, existing = graph.find_or_create(root.name, root.address, 0)
            if not existing:
                graph.add_global_root(node)
            for pointer in provider.root_pointers(root):
                target = pointer.target
                child, _ = graph.find_or_create(
                    target.type_name, target.address, target.size
                )
                link = pointer.name or provider.type_field_name(
                    root.type_name, pointer.offset
                )
                node.append_child(child, link)

        for goroutine in provider.goroutines():
            node, _ = graph.find_or_create(
                goroutine_name(goroutine.address), goroutine.address, goroutine.size
            )
            graph.add_goroutine_root(node)
            for pointer in provider.root_pointers(goroutine):
                target = pointer.target
                child, _ = graph.find_or_create(
                    target.type_name, target.address, target.size
                )
                node.append_child(child, pointer.name)

        LOGGER.debug(
            "Ingested %d nodes, %d global roots, %d goroutine roots",
            len(graph.nodes),
            len(graph.global_roots),
            len(graph.goroutine_roots),
        )
        return graph

    def expand(self, frontier: List[ObjNode]) -> None:
        """Grow the forest breadth first below ``frontier``, one level at a time."""
        while frontier:
            next_frontier: List[ObjNode] = []
            for node in frontier:
                if node.address not in self.visited:
                    raise ForestInvariantError(
                        f"Tried to add children to unvisited node {node.name} "
                        f"at {node.address:#x}"
                    )
                canonical = self.nodes[node.address]
                for ref in canonical.refs:
                    target = ref.node
                    if target.address in self.visited:
                        continue
                    child = target.copy()
                    node.append_child(child, ref.link)
                    self.visited.add(child.address)
                    next_frontier.append(child)
            frontier = next_frontier

    def build_forest(self) -> List[ObjNode]:
        self.expand(list(self.global_roots))
        self.expand(list(self.goroutine_roots))
        return self.roots

    def compute_retained_sizes(self) -> int:
        total = 0
        for root in self.roots:
            total += calc_tree_size(root)
        self.total_size = total
        return total
