from dataclasses import dataclass
from typing import List
from typing import Optional
from typing import Sequence
from typing import TextIO
from typing import Tuple

from heapref._objgraph import ObjectGraph
from heapref._objgraph import ObjNode
from heapref.reporters.common import gen_ref_path
from heapref.reporters.common import node_label


@dataclass
class _Visit:
    node: ObjNode
    parent: Optional["_Visit"]
    link: str = ""
    label: str = ""
    printed: int = 0
    entered: bool = False

    def segments(self) -> Tuple[str, ...]:
        return (self.link, self.label) if self.link else (self.label,)

    def path(self) -> List[str]:
        path: List[str] = []
        visit: Optional[_Visit] = self
        while visit is not None:
            path.extend(reversed(visit.segments()))
            visit = visit.parent
        path.reverse()
        return path


class ObjRefReporter:
    """Write the reference paths that retain a significant share of memory.

    Each record is the path from a root down to a node, one segment per
    line, followed by a tab-indented line holding the bytes retained by that
    node which no deeper record already accounts for. Subtrees retaining
    less than ``min_width`` percent of the total are skipped entirely.
    """

    def __init__(
        self,
        roots: Sequence[ObjNode],
        total: int,
        *,
        min_width: float = 0.0,
        print_addr: bool = False,
    ) -> None:
        self.roots = roots
        self.total = total
        self.min_width = min_width
        self.print_addr = print_addr
        self.lines_written = 0

    @classmethod
    def from_graph(
        cls, graph: ObjectGraph, *, min_width: float = 0.0, print_addr: bool = False
    ) -> "ObjRefReporter":
        total = graph.total_size
        if total is None:
            total = graph.compute_retained_sizes()
        return cls(graph.roots, total, min_width=min_width, print_addr=print_addr)

    def _too_small(self, size: int) -> bool:
        return size / self.total < self.min_width / 100

    def render(self, outfile: TextIO) -> int:
        """Write the report and return how many bytes it accounts for."""
        self.lines_written = 0
        if self.total <= 0:
            return 0
        return sum(self._render_root(root, outfile) for root in self.roots)

    def _render_root(self, root: ObjNode, outfile: TextIO) -> int:
        stack = [_Visit(node=root, parent=None)]
        while stack:
            visit = stack[-1]
            node = visit.node

            if not visit.entered:
                visit.entered = True
                if self._too_small(node.retained_size):
                    stack.pop()
                    continue
                visit.label = node_label(node, self.print_addr)
                stack.extend(
                    _Visit(node=ref.node, parent=visit, link=ref.link)
                    for ref in reversed(node.refs)
                )
                continue

            stack.pop()
            result = self._finish(visit, outfile)
            if visit.parent is None:
                return result
            visit.parent.printed += result
        return 0

    def _finish(self, visit: _Visit, outfile: TextIO) -> int:
        leftover = visit.node.retained_size - visit.printed
        if leftover <= 0 or self._too_small(leftover):
            return visit.printed
        outfile.write(f"{gen_ref_path(visit.path())}\n\t{leftover}\n")
        self.lines_written += 1
        return visit.node.retained_size
