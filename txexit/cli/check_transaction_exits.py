"""Report exit statements that leave transactional blocks.

Reads syntax trees produced by a Ruby parser and serialized as JSON (see
``txexit.services.tree_loader``) and prints one line per offense.

Usage:
    python -m txexit.cli.check_transaction_exits [options] TREE.json...

Exit codes:
    0 - No offenses
    1 - Offenses found
    2 - Configuration or input error (check logs for details)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from txexit.config import (
    ConfigurationError,
    RuleConfig,
    Settings,
    settings as default_settings,
    build_allow_list,
    load_rule_config,
)
from txexit.logging_config import setup_logging
from txexit.models.offense import Offense
from txexit.services.transaction_exit_rule import TransactionExitStatementRule
from txexit.services.tree_loader import TreeFormatError, load_tree

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_OFFENSES = 1
EXIT_ERROR = 2

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Flag return/break/throw inside transaction and with_lock blocks."
    )
    parser.add_argument("paths", nargs="*", type=Path, help="JSON syntax tree files")
    parser.add_argument(
        "--allowed-method",
        dest="allowed_methods",
        action="append",
        default=[],
        metavar="NAME",
        help="Extra method name that opens a transaction (repeatable)",
    )
    parser.add_argument(
        "--allowed-pattern",
        dest="allowed_patterns",
        action="append",
        default=[],
        metavar="REGEX",
        help="Regex matched against method names that open a transaction (repeatable)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON config file with a Rails/TransactionExitStatement section",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default from TXEXIT_LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def _write_offenses(offenses: list[Offense], output_format: str) -> None:
    if output_format == "json":
        sys.stdout.write(json.dumps([offense.as_dict() for offense in offenses], indent=2) + "\n")
        return
    for offense in offenses:
        sys.stdout.write(offense.format() + "\n")


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = parse_args(argv)
    settings = settings or default_settings
    try:
        setup_logging(args.log_level or settings.log_level)
    except ValueError as e:
        # logging is not configured yet
        sys.stderr.write(f"Invalid log level {settings.log_level!r}: {e}\n")
        return EXIT_ERROR

    config_path = args.config or settings.config_file
    try:
        rule_config = load_rule_config(config_path) if config_path else RuleConfig()
        allow_list = build_allow_list(
            settings,
            rule_config,
            methods=args.allowed_methods,
            patterns=args.allowed_patterns,
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR

    if not rule_config.enabled:
        logger.info("Rails/TransactionExitStatement is disabled by configuration")

    rule = TransactionExitStatementRule(allow_list, enabled=rule_config.enabled)
    offenses: list[Offense] = []
    failed = 0
    for path in args.paths:
        try:
            tree = load_tree(path)
        except TreeFormatError as e:
            logger.error(str(e))
            failed += 1
            continue
        offenses.extend(rule.inspect(tree))

    _write_offenses(offenses, args.format)
    logger.info(
        f"Inspected {len(args.paths) - failed} file(s): "
        f"{len(offenses)} offense(s), {failed} unreadable"
    )

    if failed:
        return EXIT_ERROR
    return EXIT_OFFENSES if offenses else EXIT_OK


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
