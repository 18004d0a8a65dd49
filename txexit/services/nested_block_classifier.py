"""Decide whether a ``break`` only leaves an inner, non-transactional block."""

from __future__ import annotations

from txexit.models.fields import NodeKind
from txexit.models.syntax import SyntaxNode, SyntaxTree
from txexit.services.transaction_matcher import TransactionCallMatcher


class NestedBlockClassifier:
    def __init__(self, matcher: TransactionCallMatcher) -> None:
        self.matcher = matcher

    def is_legitimately_nested(self, tree: SyntaxTree, node: SyntaxNode) -> bool:
        """True when ``node`` is a break scoped to a closer, unrelated block.

        Only breaks are ever exempt: a return leaves the enclosing method and a
        throw unwinds the stack no matter how deeply the block is nested. The
        closest enclosing block decides; loops are not blocks, so a break of a
        ``while`` directly inside a transaction body is not exempt.
        """
        if node.kind is not NodeKind.break_:
            return False

        block = next(
            (ancestor for ancestor in tree.ancestors(node) if ancestor.kind is NodeKind.block),
            None,
        )
        if block is None:
            return False

        call = tree.block_call(block)
        name = call.method_name if call is not None else None
        return not self.matcher.is_transaction_method(name)
