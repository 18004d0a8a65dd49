"""Helpers for writing syntax trees as parser-gem s-expressions.

``transaction { return }`` is written as::

    ["block", ["send", None, "transaction"], ["args"], ["return"]]

which is the shape ``Parser::AST::Node#to_sexp_array`` produces.
"""

from typing import Any, Optional

from txexit.models.fields import NodeKind
from txexit.models.syntax import SyntaxNode, SyntaxTree


def block(method: str, body: Any, receiver: Any = None) -> list:
    """S-expression for ``receiver.method do ... end``."""
    return ["block", ["send", receiver, method], ["args"], body]


def if_(condition: Any, then: Any) -> list:
    """S-expression for ``then if condition``."""
    return ["if", condition, then, None]


def call(method: str, *args: Any, receiver: Any = None) -> list:
    return ["send", receiver, method, *args]


def find_nodes(tree: SyntaxTree, kind: NodeKind, method_name: Optional[str] = None) -> list[SyntaxNode]:
    return [
        node
        for node in tree
        if node.kind is kind and (method_name is None or node.method_name == method_name)
    ]
