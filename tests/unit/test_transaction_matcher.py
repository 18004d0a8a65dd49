"""Unit tests for recognizing transaction-opening calls."""

import re

import pytest

from txexit.config import AllowListConfig, make_allow_list
from txexit.models.fields import NodeKind
from txexit.services.transaction_matcher import TransactionCallMatcher
from txexit.services.tree_loader import parse_tree
from tests.unit.tree_helpers import block, call, find_nodes


class TestIsTransactionMethod:
    """Tests for the transaction method name predicate."""

    @pytest.mark.parametrize("name", ["transaction", "with_lock"])
    def test_builtin_names(self, name: str) -> None:
        """transaction and with_lock should always match."""
        assert TransactionCallMatcher().is_transaction_method(name)

    @pytest.mark.parametrize("name", ["each", "Transaction", "transactions", "", None])
    def test_other_names(self, name) -> None:
        """Other names, near misses and blanks should not match."""
        assert not TransactionCallMatcher().is_transaction_method(name)

    def test_exact_allowed_name(self) -> None:
        """Allowed names should match exactly and case-sensitively."""
        matcher = TransactionCallMatcher(make_allow_list(names=["custom_transaction"]))

        assert matcher.is_transaction_method("custom_transaction")
        assert not matcher.is_transaction_method("custom_transaction!")

    def test_pattern_is_a_partial_match(self) -> None:
        """Patterns should honour their own anchors."""
        matcher = TransactionCallMatcher(make_allow_list(patterns=["_transaction$"]))

        assert matcher.is_transaction_method("other_transaction")
        assert not matcher.is_transaction_method("other_transaction_log")

    def test_unanchored_pattern_matches_substrings(self) -> None:
        """Unanchored patterns should match anywhere in the name."""
        matcher = TransactionCallMatcher(make_allow_list(patterns=["lock"]))

        assert matcher.is_transaction_method("with_advisory_lock")

    def test_allow_list_does_not_replace_builtins(self) -> None:
        """Configured names should add to the built-ins."""
        matcher = TransactionCallMatcher(AllowListConfig(exact_names=frozenset({"atomic"})))

        assert matcher.is_transaction_method("transaction")
        assert matcher.is_transaction_method("atomic")

    def test_precompiled_patterns_are_accepted(self) -> None:
        """Already compiled patterns should be usable as-is."""
        allow_list = AllowListConfig(patterns=(re.compile("^safe_"),))

        assert TransactionCallMatcher(allow_list).is_transaction_method("safe_update")


class TestTransactionBody:
    """Tests for finding the block body a call scopes."""

    def test_block_with_body_matches(self) -> None:
        """A transaction call owning a non-empty block should match."""
        tree = parse_tree(block("transaction", ["return"]))
        send = find_nodes(tree, NodeKind.call, "transaction")[0]
        matcher = TransactionCallMatcher()

        assert matcher.in_transaction_block(tree, send)
        assert matcher.transaction_body(tree, send).kind is NodeKind.return_

    def test_receiver_does_not_matter(self) -> None:
        """user.with_lock should match like a receiverless call."""
        tree = parse_tree(block("with_lock", ["return"], receiver=["lvar", "user"]))
        send = find_nodes(tree, NodeKind.call, "with_lock")[0]

        assert TransactionCallMatcher().in_transaction_block(tree, send)

    def test_empty_block_is_not_a_match(self) -> None:
        """An empty block should be a silent non-match."""
        tree = parse_tree(block("transaction", None))
        send = find_nodes(tree, NodeKind.call, "transaction")[0]

        assert TransactionCallMatcher().transaction_body(tree, send) is None

    def test_call_without_block_is_not_a_match(self) -> None:
        """A call with no block should be a silent non-match."""
        tree = parse_tree(["begin", call("transaction"), ["return"]])
        send = find_nodes(tree, NodeKind.call, "transaction")[0]

        assert not TransactionCallMatcher().in_transaction_block(tree, send)

    def test_call_in_block_body_is_not_the_owner(self) -> None:
        """A call inside another block's body does not own that block."""
        # items.each { transaction }: the block belongs to each, not transaction
        tree = parse_tree(block("each", call("transaction"), receiver=["lvar", "items"]))
        send = find_nodes(tree, NodeKind.call, "transaction")[0]

        assert not TransactionCallMatcher().in_transaction_block(tree, send)

    def test_unlisted_method_is_not_a_match(self) -> None:
        """Unconfigured custom names should not match."""
        tree = parse_tree(block("custom_transaction", ["return"]))
        send = find_nodes(tree, NodeKind.call, "custom_transaction")[0]

        assert not TransactionCallMatcher().in_transaction_block(tree, send)

    def test_non_call_nodes_never_match(self) -> None:
        """Only call nodes can open a transaction."""
        tree = parse_tree(block("transaction", ["return"]))

        assert TransactionCallMatcher().transaction_body(tree, tree.root) is None
