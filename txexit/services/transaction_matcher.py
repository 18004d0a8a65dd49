"""Recognize calls whose block opens a transactional scope."""

from __future__ import annotations

from typing import Optional

from txexit.config import AllowListConfig
from txexit.models.fields import NodeKind
from txexit.models.syntax import SyntaxNode, SyntaxTree

TRANSACTION_METHODS = frozenset({"transaction", "with_lock"})


class TransactionCallMatcher:
    """Built-in transaction methods plus the configured allow-list."""

    def __init__(self, allow_list: Optional[AllowListConfig] = None) -> None:
        self.allow_list = allow_list or AllowListConfig()

    def is_transaction_method(self, name: Optional[str]) -> bool:
        if not name:
            return False
        return name in TRANSACTION_METHODS or self.allow_list.matches(name)

    def transaction_body(self, tree: SyntaxTree, node: SyntaxNode) -> Optional[SyntaxNode]:
        """Return the block body scoped by ``node``, or None when it opens no scope.

        The call must name a transaction method and be the call its parent
        block is attached to; blocks without a body never match.
        """
        if node.kind is not NodeKind.call:
            return None
        if not self.is_transaction_method(node.method_name):
            return None

        parent = tree.parent(node)
        if parent is None or parent.kind is not NodeKind.block:
            return None
        owner = tree.block_call(parent)
        if owner is None or owner.index != node.index:
            return None
        return tree.block_body(parent)

    def in_transaction_block(self, tree: SyntaxTree, node: SyntaxNode) -> bool:
        return self.transaction_body(tree, node) is not None
