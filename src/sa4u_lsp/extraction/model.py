from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from lsprotocol.types import DiagnosticSeverity

# Characters between the insertion point and the end of the diagnosed line:
# the statement terminator and the line break (";\r\n").
DEFAULT_BACKTRACK = 3
MULTIPLY_BY_100 = " * 100"


class FindingCategory(str, Enum):
    INCORRECT_STORE = "incorrect_store"
    DECLARED_VARIABLE = "declared_variable"
    ASSIGNMENT = "assignment"
    CALL = "call"


@dataclass(frozen=True)
class LineSpan:
    start_line: int
    start_character: int
    end_line: int
    end_character: int

    @classmethod
    def whole_line(cls, line_number: int) -> LineSpan:
        """Span covering reported 1-based line ``line_number`` up to the next line."""
        return cls(line_number - 1, 0, line_number, 0)


@dataclass(frozen=True)
class Repair:
    title: str
    change: str
    backtrack: int = DEFAULT_BACKTRACK

    def as_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"title": self.title, "change": self.change}
        if self.backtrack != DEFAULT_BACKTRACK:
            payload["backtrack"] = self.backtrack
        return payload


@dataclass(frozen=True)
class Finding:
    category: FindingCategory
    severity: DiagnosticSeverity
    span: LineSpan
    message: str
    source_label: str
    subject: str
    repair: Repair | None = None

    @property
    def line_number(self) -> int:
        return self.span.end_line
