from __future__ import annotations

from typing import Iterable

from lsprotocol.types import CodeAction, CodeActionKind, Command, Diagnostic, Range

from sa4u_lsp.quickfix.payload import repair_from_data

FIX_COMMAND = "sa4u.fix"


def resolve_quick_fixes(
    uri: str, requested: Range, diagnostics: Iterable[Diagnostic]
) -> list[CodeAction]:
    """One quick fix per diagnostic whose range is exactly ``requested``.

    Overlap is not enough: the fix is pinned to the diagnostic that produced
    it, so all four coordinates must agree.
    """
    actions: list[CodeAction] = []
    for diagnostic in diagnostics:
        if diagnostic.range != requested:
            continue
        repair = repair_from_data(diagnostic.data)
        if repair is None:
            continue
        actions.append(
            CodeAction(
                title=repair.title,
                kind=CodeActionKind.QuickFix,
                diagnostics=[diagnostic],
                command=Command(
                    title=repair.title,
                    command=FIX_COMMAND,
                    arguments=[uri, repair.change, diagnostic.range],
                ),
            )
        )
    return actions
