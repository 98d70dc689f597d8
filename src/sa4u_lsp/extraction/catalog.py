"""Known SA4U finding formats, in the order they are tried.

The analyzer reports findings as free text. Each rule pins one message
format; the first rule that matches a line wins. Rule order matters: the
store formats are more specific than the assignment and call formats and
must be tried first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from lsprotocol.types import DiagnosticSeverity

from sa4u_lsp.extraction.model import (
    MULTIPLY_BY_100,
    Finding,
    FindingCategory,
    LineSpan,
    Repair,
)
from sa4u_lsp.invariants import never


@dataclass(frozen=True)
class PatternRule:
    category: FindingCategory
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], Finding | None]

    def apply(self, line: str) -> Finding | None:
        match = self.pattern.search(line)
        if match is None:
            return None
        return self.extract(match)


def _line_number(raw: str | None) -> int | None:
    if raw is None or not raw.isascii() or not raw.isdigit():
        return None
    value = int(raw, 10)
    if value <= 0:
        return None
    return value


def _multiply_by_100(subject: str) -> Repair:
    return Repair(title=f"Multiply {subject} by 100.", change=MULTIPLY_BY_100)


def build_finding(
    category: FindingCategory,
    *,
    subject: str,
    source_label: str,
    line_number: int,
) -> Finding:
    span = LineSpan.whole_line(line_number)
    match category:
        case FindingCategory.INCORRECT_STORE | FindingCategory.DECLARED_VARIABLE:
            message = f"Incorrect store to {subject}."
            repair: Repair | None = _multiply_by_100(subject)
        case FindingCategory.ASSIGNMENT:
            message = f"Stores to {subject}."
            repair = _multiply_by_100(subject)
        case FindingCategory.CALL:
            message = f"Calls to {subject}."
            repair = None
        case _:
            never("unhandled finding category", category=category)
    return Finding(
        category=category,
        severity=DiagnosticSeverity.Error,
        span=span,
        message=message,
        source_label=source_label,
        subject=subject,
        repair=repair,
    )


def _extractor(category: FindingCategory) -> Callable[[re.Match[str]], Finding | None]:
    def _extract(match: re.Match[str]) -> Finding | None:
        line_number = _line_number(match.group("line"))
        if line_number is None:
            return None
        return build_finding(
            category,
            subject=match.group("subject"),
            source_label=match.group("source"),
            line_number=line_number,
        )

    return _extract


def _rule(category: FindingCategory, pattern: str) -> PatternRule:
    return PatternRule(
        category=category,
        pattern=re.compile(pattern),
        extract=_extractor(category),
    )


PATTERN_CATALOG: tuple[PatternRule, ...] = (
    _rule(
        FindingCategory.INCORRECT_STORE,
        r"Incorrect store to variable (?P<subject>.*) in (?P<source>.*) "
        r"line (?P<line>[0-9]+)\. (?P<detail>.*)",
    ),
    _rule(
        FindingCategory.DECLARED_VARIABLE,
        r"Variable (?P<subject>.*) declared in (?P<source>.*) "
        r"on line (?P<line>[0-9]+) \((?P<detail>.*)\)",
    ),
    _rule(
        FindingCategory.ASSIGNMENT,
        r"Assignment to (?P<subject>.*) in (?P<source>.*) on line (?P<line>[0-9]+)",
    ),
    _rule(
        FindingCategory.CALL,
        r"Call to (?P<subject>.*) in (?P<source>.*) on line (?P<line>[0-9]+)",
    ),
)
