"""Node arena owning every element of one document tree.

Elements refer to their parent by a stable integer id that is resolved
through the arena, rather than holding a reference to the parent object.
The arena is the sole owner; parents own their children only in the sense
of ordering them.
"""

from typing import TYPE_CHECKING, Iterator, List, Optional

if TYPE_CHECKING:
    from .nodes import ElementNode


class NodeArena:
    """Append-only registry of the elements in one document tree."""

    def __init__(self, source: Optional[str] = None) -> None:
        self.source = source
        self._elements: List["ElementNode"] = []

    def register(self, element: "ElementNode") -> int:
        """Register an element and return its stable id."""
        self._elements.append(element)
        return len(self._elements) - 1

    def get(self, node_id: Optional[int]) -> Optional["ElementNode"]:
        """Look up an element by id; ``None`` resolves to ``None``."""
        if node_id is None:
            return None
        if not (0 <= node_id < len(self._elements)):
            raise KeyError(f"No element with id {node_id} in this arena")
        return self._elements[node_id]

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator["ElementNode"]:
        return iter(self._elements)

    def __repr__(self) -> str:
        return f"NodeArena(source={self.source!r}, elements={len(self._elements)})"
