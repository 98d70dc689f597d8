from __future__ import annotations

from typing import Iterable, Sequence

from sa4u_lsp.extraction.catalog import PATTERN_CATALOG, PatternRule
from sa4u_lsp.extraction.model import Finding


def parse_line(
    line: str, rules: Sequence[PatternRule] = PATTERN_CATALOG
) -> Finding | None:
    """Return the finding for ``line`` from the first rule that accepts it."""
    line = line.removesuffix("\r")
    if not line.strip():
        return None
    for rule in rules:
        finding = rule.apply(line)
        if finding is not None:
            return finding
    return None


def iter_findings(
    lines: Iterable[str], rules: Sequence[PatternRule] = PATTERN_CATALOG
) -> Iterable[Finding]:
    for line in lines:
        finding = parse_line(line, rules)
        if finding is not None:
            yield finding


def parse_output(
    output: str, rules: Sequence[PatternRule] = PATTERN_CATALOG
) -> list[Finding]:
    """Parse one analyzer run's stdout into findings, in output order."""
    return list(iter_findings(output.split("\n"), rules))
