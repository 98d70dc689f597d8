from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable

from pygls.lsp.server import LanguageServer
from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_CODE_ACTION,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    CodeAction,
    CodeActionKind,
    CodeActionOptions,
    CodeActionParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
    ShowMessageParams,
)

from sa4u_lsp import __version__
from sa4u_lsp.analyzer import ProcessRunner, document_directory, run_analyzer, run_subprocess
from sa4u_lsp.config import AnalyzerSettings, resolve_settings
from sa4u_lsp.exceptions import AnalyzerInvocationError, FixRejected
from sa4u_lsp.extraction import parse_output
from sa4u_lsp.publisher import publish_diagnostics, to_diagnostics
from sa4u_lsp.quickfix import FIX_COMMAND, apply_fix, parse_fix_arguments, resolve_quick_fixes
from sa4u_lsp.session import DocumentSession, SessionRegistry

LOGGER = logging.getLogger(__name__)


class Sa4uLanguageServer(LanguageServer):
    def __init__(
        self,
        *args: Any,
        analyzer_runner: ProcessRunner = run_subprocess,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.sessions = SessionRegistry()
        self.analyzer_runner = analyzer_runner
        self.initialization_options: object = None

    def settings_for(self, uri: str) -> AnalyzerSettings:
        root_path = self.workspace.root_path
        root = Path(root_path) if root_path else document_directory(uri)
        return resolve_settings(root, initialization_options=self.initialization_options)


server = Sa4uLanguageServer("sa4u-lsp", __version__)


@server.feature(INITIALIZE)
def initialize(ls: Sa4uLanguageServer, params: InitializeParams) -> None:
    ls.initialization_options = params.initialization_options


async def validate_document(
    ls: Sa4uLanguageServer, session: DocumentSession, generation: int
) -> None:
    """Run the analyzer for one document and publish what it reports.

    An analyzer failure publishes an empty set. Results of a validation that
    was superseded or whose document closed are discarded.
    """
    uri = session.uri
    version = ls.workspace.get_text_document(uri).version
    try:
        output = await run_analyzer(
            document_directory(uri), session.settings, runner=ls.analyzer_runner
        )
    except AnalyzerInvocationError as exc:
        LOGGER.warning("analyzer failed for %s: %s", uri, exc)
        if exc.stderr:
            LOGGER.debug("analyzer stderr for %s:\n%s", uri, exc.stderr)
        ls.window_log_message(
            LogMessageParams(type=MessageType.Warning, message=f"SA4U: {exc}")
        )
        output = ""
    diagnostics = to_diagnostics(parse_output(output), limit=session.settings.max_problems)
    if not session.record(generation, version, diagnostics):
        LOGGER.debug("dropping superseded results for %s", uri)
        return
    publish_diagnostics(ls, uri, diagnostics, version=version)


async def schedule_validation(ls: Sa4uLanguageServer, session: DocumentSession) -> None:
    generation = session.begin_validation()
    task = asyncio.create_task(validate_document(ls, session, generation))
    session.task = task
    await asyncio.wait({task})
    if task.cancelled() or task.exception() is None:
        return
    # Anything that escaped validate_document still leaves the document clean.
    LOGGER.error("validation of %s failed", session.uri, exc_info=task.exception())
    ls.window_log_message(
        LogMessageParams(type=MessageType.Error, message=f"SA4U: {task.exception()}")
    )
    if session.record(generation, None, []):
        publish_diagnostics(ls, session.uri, [])


@server.feature(TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls: Sa4uLanguageServer, params: DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    session = ls.sessions.open(uri, ls.settings_for(uri))
    await schedule_validation(ls, session)


@server.feature(TEXT_DOCUMENT_DID_SAVE)
async def did_save(ls: Sa4uLanguageServer, params: DidSaveTextDocumentParams) -> None:
    uri = params.text_document.uri
    session = ls.sessions.get(uri)
    if session is None:
        session = ls.sessions.open(uri, ls.settings_for(uri))
    await schedule_validation(ls, session)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: Sa4uLanguageServer, params: DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    if ls.sessions.close(uri) is not None:
        publish_diagnostics(ls, uri, [])


@server.feature(
    TEXT_DOCUMENT_CODE_ACTION,
    CodeActionOptions(code_action_kinds=[CodeActionKind.QuickFix]),
)
def code_action(ls: Sa4uLanguageServer, params: CodeActionParams) -> list[CodeAction]:
    uri = params.text_document.uri
    diagnostics = list(params.context.diagnostics)
    if not diagnostics:
        session = ls.sessions.get(uri)
        diagnostics = session.diagnostics if session is not None else []
    return resolve_quick_fixes(uri, params.range, diagnostics)


@server.command(FIX_COMMAND)
async def execute_fix(ls: Sa4uLanguageServer, *arguments: Any) -> dict:
    """Apply the quick fix named by ``[documentUri, insertionText, range]``.

    The arguments arrive unchecked so that a short or malformed call is
    rejected here, with a notice to the user, rather than by the transport.
    """
    try:
        request = parse_fix_arguments(list(arguments))
        edit = await apply_fix(ls, ls.sessions, request)
    except FixRejected as exc:
        LOGGER.warning("quick fix rejected: %s", exc)
        ls.window_show_message(
            ShowMessageParams(type=MessageType.Warning, message=f"SA4U fix not applied: {exc}")
        )
        return {"applied": False, "error": str(exc)}
    return {"applied": True, "uri": request.uri, "version": edit.text_document.version}


def start(start_fn: Callable[[], None] | None = None) -> None:
    """Start the language server over stdio."""
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
