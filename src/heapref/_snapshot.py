import bisect
import json
import logging
import os
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Set
from typing import Tuple
from typing import Union

from heapref._errors import SnapshotError
from heapref._graph import GlobalRoot
from heapref._graph import Goroutine
from heapref._graph import HeapObject
from heapref._graph import Pointer
from heapref._graph import Root

LOGGER = logging.getLogger(__name__)

UNKNOWN_TYPE_PREFIX = "unk"

# Raw pointer entries as stored in the snapshot: (offset, target address, name)
_RawPointer = Tuple[int, int, str]


def _parse_address(value: Union[int, str]) -> int:
    if isinstance(value, int):
        return value
    return int(value, 0)


def _parse_pointers(entries: Iterable[Dict[str, Any]]) -> List[_RawPointer]:
    return [
        (
            int(entry.get("offset", 0)),
            _parse_address(entry["target"]),
            str(entry.get("name", "")),
        )
        for entry in entries
    ]


class SnapshotReader:
    """Serve a heap graph stored as a JSON document.

    The document holds four sections: ``types`` (field layouts keyed by type
    name), ``objects`` (heap allocations and the pointers they contain),
    ``globals`` and ``goroutines`` (roots and their pointers). Addresses can
    be integers or strings such as ``"0xc000010000"``.
    """

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.path = os.fspath(path)
        try:
            with open(self.path, encoding="utf-8") as f:
                document = json.load(f)
        except OSError as e:
            raise SnapshotError(f"Could not read snapshot {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Snapshot {self.path} is not valid JSON: {e}") from e

        try:
            self._load(document)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotError(f"Malformed snapshot {self.path}: {e!r}") from e

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "SnapshotReader":
        reader = cls.__new__(cls)
        reader.path = "<memory>"
        try:
            reader._load(document)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotError(f"Malformed snapshot: {e!r}") from e
        return reader

    def _load(self, document: Dict[str, Any]) -> None:
        self._types: Dict[str, Dict[str, Any]] = dict(document.get("types", {}))

        self._objects: Dict[int, HeapObject] = {}
        self._object_pointers: Dict[int, List[_RawPointer]] = {}
        for entry in document.get("objects", []):
            address = _parse_address(entry["address"])
            size = int(entry["size"])
            type_name = entry.get("type") or f"{UNKNOWN_TYPE_PREFIX}{size}"
            self._objects[address] = HeapObject(address, size, type_name)
            self._object_pointers[address] = _parse_pointers(entry.get("pointers", []))
        self._sorted_addresses = sorted(self._objects)

        self._globals: List[GlobalRoot] = []
        self._root_pointers: Dict[Root, List[_RawPointer]] = {}
        for entry in document.get("globals", []):
            root = GlobalRoot(
                name=str(entry["name"]),
                address=_parse_address(entry["address"]),
                type_name=str(entry.get("type", "")),
            )
            self._globals.append(root)
            self._root_pointers.setdefault(
                root, _parse_pointers(entry.get("pointers", []))
            )

        self._goroutines: List[Goroutine] = []
        for entry in document.get("goroutines", []):
            goroutine = Goroutine(
                address=_parse_address(entry["address"]),
                size=int(entry.get("size", 0)),
            )
            self._goroutines.append(goroutine)
            self._root_pointers.setdefault(
                goroutine, _parse_pointers(entry.get("pointers", []))
            )

        LOGGER.info(
            "Loaded %d objects, %d globals and %d goroutines from %s",
            len(self._objects),
            len(self._globals),
            len(self._goroutines),
            self.path,
        )

    def find_object(self, address: int) -> Optional[HeapObject]:
        """Return the object containing ``address``, if any."""
        obj = self._objects.get(address)
        if obj is not None:
            return obj
        index = bisect.bisect_right(self._sorted_addresses, address) - 1
        if index < 0:
            return None
        candidate = self._objects[self._sorted_addresses[index]]
        if address < candidate.address + candidate.size:
            return candidate
        return None

    def _resolve(self, raw_pointers: Iterable[_RawPointer]) -> Iterator[Pointer]:
        for offset, target_address, name in raw_pointers:
            target = self.find_object(target_address)
            if target is None:
                LOGGER.debug("Dropping pointer to unknown address %#x", target_address)
                continue
            yield Pointer(
                offset=offset,
                target=target,
                target_offset=target_address - target.address,
                name=name,
            )

    def objects(self) -> Iterable[HeapObject]:
        return iter(self._objects.values())

    def pointers(self, obj: HeapObject) -> Iterable[Pointer]:
        return self._resolve(self._object_pointers.get(obj.address, ()))

    def globals(self) -> Iterable[GlobalRoot]:
        return iter(self._globals)

    def goroutines(self) -> Iterable[Goroutine]:
        return iter(self._goroutines)

    def root_pointers(self, root: Root) -> Iterable[Pointer]:
        return self._resolve(self._root_pointers.get(root, ()))

    def field_name(self, obj: HeapObject, offset: int) -> str:
        return self.type_field_name(obj.type_name, offset)

    def type_field_name(self, type_name: str, offset: int) -> str:
        return self._type_field_name(type_name, offset, set())

    def _type_field_name(self, type_name: str, offset: int, enclosing: Set[str]) -> str:
        layout = self._types.get(type_name)
        if layout is None:
            return f"+{offset}"
        if type_name in enclosing:
            # Element types that contain themselves
            return f"?+{offset}"

        for field in layout.get("fields", ()):
            start = int(field["offset"])
            if start <= offset < start + int(field.get("size", 1)):
                name = str(field["name"])
                if offset == start:
                    return name
                return f"{name}+{offset - start}"

        elem_size = int(layout.get("elem_size", 0))
        if elem_size > 0:
            index, remainder = divmod(offset, elem_size)
            elem_type = layout.get("elem_type")
            if elem_type is None:
                return f"[{index}]" if remainder == 0 else f"[{index}]+{remainder}"
            enclosing.add(type_name)
            inner = self._type_field_name(elem_type, remainder, enclosing)
            separator = "" if inner.startswith(("+", "?", "[")) else "."
            return f"[{index}]{separator}{inner}"

        return f"?+{offset}"
