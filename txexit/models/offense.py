"""Offense value object handed to reporters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from txexit.models.syntax import SourceLocation


@dataclass(frozen=True, slots=True)
class Offense:
    """A single exit statement found inside a transactional block."""

    location: Optional[SourceLocation]
    message: str
    rule: str
    node_index: int
    path: Optional[str] = None

    def format(self) -> str:
        where = self.path or "<tree>"
        if self.location is not None:
            where = f"{where}:{self.location}"
        return f"{where}: {self.rule}: {self.message}"

    def as_dict(self) -> dict[str, Any]:
        location = None
        if self.location is not None:
            location = {
                "line": self.location.line,
                "column": self.location.column,
                "last_line": self.location.last_line,
                "last_column": self.location.last_column,
            }
        return {
            "path": self.path,
            "rule": self.rule,
            "message": self.message,
            "location": location,
        }
