"""
Enumerations shared by the syntax-tree models and the rule services.
"""
from enum import Enum


class NodeKind(str, Enum):
    call = "call"
    block = "block"
    return_ = "return"
    break_ = "break"
    throw = "throw"
    rescue_body = "rescue_body"
    other = "other"

    @property
    def is_exit_statement(self) -> bool:
        return self in (NodeKind.return_, NodeKind.break_, NodeKind.throw)


# Parser node type -> kind. Types missing from this table are NodeKind.other.
NODE_TYPE_KINDS: dict[str, NodeKind] = {
    "send": NodeKind.call,
    "csend": NodeKind.call,
    "super": NodeKind.call,
    "zsuper": NodeKind.call,
    "block": NodeKind.block,
    "numblock": NodeKind.block,
    "itblock": NodeKind.block,
    "return": NodeKind.return_,
    "break": NodeKind.break_,
    "resbody": NodeKind.rescue_body,
}

THROW_METHOD = "throw"
