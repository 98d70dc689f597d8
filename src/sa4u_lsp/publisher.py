from __future__ import annotations

from typing import Iterable

from lsprotocol.types import (
    Diagnostic,
    Position,
    PublishDiagnosticsParams,
    Range,
)

from sa4u_lsp.extraction.model import Finding, LineSpan


def span_to_range(span: LineSpan) -> Range:
    return Range(
        start=Position(line=span.start_line, character=span.start_character),
        end=Position(line=span.end_line, character=span.end_character),
    )


def to_diagnostic(finding: Finding) -> Diagnostic:
    return Diagnostic(
        range=span_to_range(finding.span),
        message=finding.message,
        severity=finding.severity,
        source=finding.source_label,
        code=finding.category.value,
        data=finding.repair.as_payload() if finding.repair is not None else None,
    )


def to_diagnostics(findings: Iterable[Finding], *, limit: int | None = None) -> list[Diagnostic]:
    diagnostics = [to_diagnostic(finding) for finding in findings]
    if limit is not None:
        return diagnostics[:limit]
    return diagnostics


def publish_diagnostics(
    ls, uri: str, diagnostics: list[Diagnostic], *, version: int | None = None
) -> None:
    """Replace everything previously published for ``uri``."""
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics, version=version)
    )
