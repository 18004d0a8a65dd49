"""Shared fixtures for rule tests."""

from typing import Any, Callable, Optional

import pytest

from txexit.models.syntax import SyntaxTree
from txexit.services.transaction_exit_rule import TransactionExitStatementRule
from txexit.services.tree_loader import parse_tree


@pytest.fixture()
def make_tree() -> Callable[..., SyntaxTree]:
    """Build a SyntaxTree from a node object or s-expression."""

    def _make(document: Any, path: Optional[str] = "app/models/user.rb") -> SyntaxTree:
        return parse_tree(document, path=path)

    return _make


@pytest.fixture()
def rule() -> TransactionExitStatementRule:
    """The rule with no allow-list."""
    return TransactionExitStatementRule()


@pytest.fixture()
def messages(rule: TransactionExitStatementRule, make_tree) -> Callable[[Any], list[str]]:
    """Run the default rule over a tree document and return offense messages."""

    def _messages(document: Any) -> list[str]:
        return [offense.message for offense in rule.inspect(make_tree(document))]

    return _messages
