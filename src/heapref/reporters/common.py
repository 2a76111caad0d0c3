from typing import Sequence

from heapref._objgraph import ObjNode


def _sanitize(segment: str) -> str:
    return "".join(
        "." if char in "+?" else char for char in segment if char.isprintable()
    )


def gen_ref_path(path: Sequence[str]) -> str:
    """Render a root-to-leaf path, one sanitized segment per line."""
    return "\n".join(_sanitize(segment) for segment in path)


def node_label(node: ObjNode, print_addr: bool) -> str:
    if print_addr:
        return f"{node.name} {node.address:#x}"
    return node.name
