"""Immutable syntax-tree arena.

Nodes live in a flat tuple in depth-first pre-order, so a node's index is also
its source order. Parent links are indices into the arena; the tree owns every
node and nothing here is mutated after construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from txexit.models.fields import NodeKind


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Source span of a node (1-based lines, 0-based columns)."""

    line: int
    column: int
    last_line: Optional[int] = None
    last_column: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class SyntaxNode:
    index: int
    kind: NodeKind
    type: str
    parent: Optional[int]
    children: tuple[int, ...] = ()
    location: Optional[SourceLocation] = None
    method_name: Optional[str] = None
    has_receiver: bool = False
    body: Optional[int] = None  # blocks only; None when the block is empty


class SyntaxTree:
    """Read-only arena of SyntaxNode values for one source file."""

    def __init__(self, nodes: Sequence[SyntaxNode], path: Optional[str] = None) -> None:
        if not nodes:
            raise ValueError("A syntax tree needs at least one node")
        for position, node in enumerate(nodes):
            if node.index != position:
                raise ValueError(
                    f"Node at position {position} carries index {node.index}"
                )
        self._nodes: tuple[SyntaxNode, ...] = tuple(nodes)
        self.path = path

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> SyntaxNode:
        return self._nodes[index]

    def __iter__(self) -> Iterator[SyntaxNode]:
        return iter(self._nodes)

    @property
    def root(self) -> SyntaxNode:
        return self._nodes[0]

    def parent(self, node: SyntaxNode) -> Optional[SyntaxNode]:
        if node.parent is None:
            return None
        return self._nodes[node.parent]

    def children(self, node: SyntaxNode) -> list[SyntaxNode]:
        return [self._nodes[i] for i in node.children]

    def ancestors(self, node: SyntaxNode) -> Iterator[SyntaxNode]:
        """Yield the parent chain from the closest ancestor up to the root."""
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def walk(self, node: Optional[SyntaxNode] = None) -> Iterator[SyntaxNode]:
        """Yield ``node`` and all of its descendants, depth-first pre-order."""
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.children(current)))

    def block_call(self, block: SyntaxNode) -> Optional[SyntaxNode]:
        """Return the call a block is attached to (its first child)."""
        if block.kind is not NodeKind.block or not block.children:
            return None
        return self._nodes[block.children[0]]

    def block_body(self, block: SyntaxNode) -> Optional[SyntaxNode]:
        if block.kind is not NodeKind.block or block.body is None:
            return None
        return self._nodes[block.body]
