"""Find exit statements inside a transactional block body."""

from __future__ import annotations

from txexit.models.syntax import SyntaxNode, SyntaxTree


class ExitStatementScanner:
    """Collect ``return``, ``break`` and receiverless ``throw`` nodes.

    The whole subtree is searched, the body node itself and rescue bodies
    included. Breaks that belong to an inner block are filtered afterwards by
    the nested block classifier, not here.
    """

    def scan(self, tree: SyntaxTree, body: SyntaxNode) -> list[SyntaxNode]:
        return [node for node in tree.walk(body) if node.kind.is_exit_statement]
