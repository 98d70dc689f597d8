from sa4u_lsp.extraction.catalog import PATTERN_CATALOG, PatternRule, build_finding
from sa4u_lsp.extraction.model import (
    DEFAULT_BACKTRACK,
    MULTIPLY_BY_100,
    Finding,
    FindingCategory,
    LineSpan,
    Repair,
)
from sa4u_lsp.extraction.parser import iter_findings, parse_line, parse_output

__all__ = [
    "DEFAULT_BACKTRACK",
    "Finding",
    "FindingCategory",
    "LineSpan",
    "MULTIPLY_BY_100",
    "PATTERN_CATALOG",
    "PatternRule",
    "Repair",
    "build_finding",
    "iter_findings",
    "parse_line",
    "parse_output",
]
