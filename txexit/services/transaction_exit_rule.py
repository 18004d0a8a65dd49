"""Flag exit statements that leave a transactional block.

Since ActiveRecord 7 a transaction block left through ``return``, ``break`` or
``throw`` is rolled back instead of committed. Raising is the explicit way to
roll back and ``next`` the explicit way to commit, so the rule suggests those.

    # bad
    ApplicationRecord.transaction do
      return if user.active?
    end

    # good
    ApplicationRecord.transaction do
      next if user.active?
    end
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from txexit.config import RULE_NAME, AllowListConfig
from txexit.models.fields import NodeKind
from txexit.models.offense import Offense
from txexit.models.syntax import SyntaxNode, SyntaxTree
from txexit.services.exit_scanner import ExitStatementScanner
from txexit.services.nested_block_classifier import NestedBlockClassifier
from txexit.services.transaction_matcher import TransactionCallMatcher

logger = logging.getLogger(__name__)

MSG = "Exit statement `{statement}` is not allowed. Use `raise` (rollback) or `next` (commit)."


def classify(node: SyntaxNode) -> str:
    """Label an exit statement for the offense message."""
    if node.kind is NodeKind.return_:
        return "return"
    if node.kind is NodeKind.break_:
        return "break"
    return node.method_name or "throw"


class OffenseCollector:
    """Offense sink that keeps one offense per node.

    An exit statement inside nested transactional blocks is found once per
    enclosing scope; only the first report is kept.
    """

    def __init__(self) -> None:
        self.offenses: list[Offense] = []
        self._seen: set[int] = set()

    def add(self, offense: Offense) -> bool:
        if offense.node_index in self._seen:
            return False
        self._seen.add(offense.node_index)
        self.offenses.append(offense)
        return True


class TransactionExitStatementRule:
    """Match, scan, filter and report in one pass per call node."""

    name = RULE_NAME

    def __init__(self, allow_list: Optional[AllowListConfig] = None, enabled: bool = True) -> None:
        self.matcher = TransactionCallMatcher(allow_list)
        self.scanner = ExitStatementScanner()
        self.classifier = NestedBlockClassifier(self.matcher)
        self.enabled = enabled

    def on_call(self, tree: SyntaxTree, node: SyntaxNode) -> Iterator[Offense]:
        """Yield offenses for the transactional block opened by ``node``, if any."""
        body = self.matcher.transaction_body(tree, node)
        if body is None:
            return

        for statement in self.scanner.scan(tree, body):
            if self.classifier.is_legitimately_nested(tree, statement):
                continue
            yield Offense(
                location=statement.location,
                message=MSG.format(statement=classify(statement)),
                rule=self.name,
                node_index=statement.index,
                path=tree.path,
            )

    def inspect(self, tree: SyntaxTree) -> list[Offense]:
        """Visit every call node in source order and collect offenses."""
        if not self.enabled:
            return []

        collector = OffenseCollector()
        for node in tree.walk():
            if node.kind is not NodeKind.call:
                continue
            for offense in self.on_call(tree, node):
                if collector.add(offense):
                    logger.debug(f"{offense.format()} (scope opened by `{node.method_name}`)")
        return collector.offenses
