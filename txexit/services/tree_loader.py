"""Syntax tree loader.

Turns the JSON rendering of a Ruby parser AST into a :class:`SyntaxTree`.
Two node spellings are accepted and may be mixed:

  * objects: ``{"type": "send", "children": [null, "transaction"], "location": {...}}``
  * s-expression arrays: ``["send", null, "transaction"]`` (no locations)

A document may also wrap the root node as ``{"path": "...", "ast": <node>}``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr, ValidationError

from txexit.models.fields import NODE_TYPE_KINDS, THROW_METHOD, NodeKind
from txexit.models.syntax import SourceLocation, SyntaxNode, SyntaxTree

logger = logging.getLogger(__name__)

Scalar = Union[StrictStr, StrictInt, StrictFloat, StrictBool, None]


class TreeFormatError(ValueError):
    """Raised when a document does not describe a syntax tree."""


class LocationPayload(BaseModel):
    line: int
    column: int
    last_line: Optional[int] = None
    last_column: Optional[int] = None

    model_config = ConfigDict(extra="ignore")

    def to_location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.last_line, self.last_column)


class NodePayload(BaseModel):
    """One node, validated shallowly: child nodes stay raw until visited."""

    type: str
    children: list[Union[dict[str, Any], list[Any], Scalar]] = Field(default_factory=list)
    location: Optional[LocationPayload] = None

    model_config = ConfigDict(extra="ignore")


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'node'}: {err['msg']}"
        for err in exc.errors(include_url=False, include_input=False)
    )


def _node_payload(raw: Any, index: int) -> NodePayload:
    """Validate a single node object or s-expression array."""
    if isinstance(raw, list):
        if not raw or not isinstance(raw[0], str):
            raise TreeFormatError(f"S-expression at node {index} must start with a node type")
        raw = {"type": raw[0], "children": raw[1:]}
    try:
        return NodePayload.model_validate(raw)
    except ValidationError as exc:
        raise TreeFormatError(f"Invalid node {index}: {_describe(exc)}") from exc


def _call_details(payload: NodePayload) -> tuple[Optional[str], bool]:
    if payload.type in ("super", "zsuper"):
        return "super", False
    if payload.type == "lambda":
        return "lambda", False
    if payload.type in ("send", "csend") and len(payload.children) >= 2:
        receiver, method = payload.children[0], payload.children[1]
        name = method if isinstance(method, str) else None
        return name, receiver is not None
    return None, False


def _make_node(
    index: int, payload: NodePayload, parent: Optional[int], positions: dict[int, int]
) -> SyntaxNode:
    kind = NODE_TYPE_KINDS.get(payload.type, NodeKind.other)
    method_name, has_receiver = _call_details(payload)
    if payload.type == "send" and not has_receiver and method_name == THROW_METHOD:
        kind = NodeKind.throw

    body = None
    if kind is NodeKind.block:
        if 0 not in positions:
            raise TreeFormatError(f"Block at node {index} has no call node")
        body = positions.get(2)

    return SyntaxNode(
        index=index,
        kind=kind,
        type=payload.type,
        parent=parent,
        children=tuple(positions[position] for position in sorted(positions)),
        location=payload.location.to_location() if payload.location else None,
        method_name=method_name,
        has_receiver=has_receiver,
        body=body,
    )


def _build(document: Any, path: Optional[str]) -> SyntaxTree:
    # (payload, parent index, raw child position -> arena index), in pre-order
    entries: list[tuple[NodePayload, Optional[int], dict[int, int]]] = []
    stack: list[tuple[Any, Optional[int], int]] = [(document, None, 0)]
    while stack:
        raw, parent, position = stack.pop()
        index = len(entries)
        payload = _node_payload(raw, index)
        entries.append((payload, parent, {}))
        if parent is not None:
            entries[parent][2][position] = index
        for child_position in range(len(payload.children) - 1, -1, -1):
            child = payload.children[child_position]
            if isinstance(child, (dict, list)):
                stack.append((child, index, child_position))

    nodes = [
        _make_node(index, payload, parent, positions)
        for index, (payload, parent, positions) in enumerate(entries)
    ]
    return SyntaxTree(nodes, path=path)


def parse_tree(document: Any, path: Optional[str] = None) -> SyntaxTree:
    """Build a SyntaxTree from a decoded JSON document.

    A wrapper document's own ``path`` names the Ruby source and takes
    precedence over ``path``. Nodes are visited with an explicit stack, so
    tree depth is not bounded by the interpreter's recursion limit.
    """
    if isinstance(document, dict) and "ast" in document:
        path = document.get("path") or path
        document = document["ast"]

    if not isinstance(document, (dict, list)):
        raise TreeFormatError(f"Syntax tree document must be a node, got {type(document).__name__}")

    tree = _build(document, path)
    logger.debug(f"Loaded {len(tree)} nodes from {path or '<document>'}")
    return tree


def load_tree(path: Path) -> SyntaxTree:
    """Read and parse a JSON tree document from disk."""
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, RecursionError) as exc:
        raise TreeFormatError(f"Cannot read syntax tree {path}: {exc}") from exc
    return parse_tree(document, path=str(path))
