from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Sequence

from lsprotocol.types import (
    ApplyWorkspaceEditParams,
    ApplyWorkspaceEditResult,
    LogMessageParams,
    PublishDiagnosticsParams,
    ShowMessageParams,
)
from pygls.workspace import TextDocument

from sa4u_lsp.analyzer import CompletedRun
from sa4u_lsp.config import AnalyzerSettings
from sa4u_lsp.quickfix import offset_at
from sa4u_lsp.session import SessionRegistry

STORE_LINE = "Incorrect store to variable speed_mph in /src/foo.cpp line {line}. Expected units: m/s"
CALL_LINE = "Call to setSpeed in /src/bar.cpp on line {line}"


def analyzer_output(*lines: str) -> str:
    return "\n".join(lines) + "\n"


class ScriptedRunner:
    """Analyzer runner that answers from a queue of canned results."""

    def __init__(self, *results: CompletedRun | BaseException) -> None:
        self.results = list(results)
        self.calls: list[list[str]] = []
        self.timeouts: list[float] = []

    async def __call__(self, argv: Sequence[str], timeout: float) -> CompletedRun:
        self.calls.append(list(argv))
        self.timeouts.append(timeout)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


class GatedRunner:
    """Analyzer runner whose answer for a directory waits on an event."""

    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = {}
        self.outputs: dict[str, str] = {}
        self.started: list[str] = []

    def gate(self, directory: Path, output: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[str(directory)] = event
        self.outputs[str(directory)] = output
        return event

    async def __call__(self, argv: Sequence[str], timeout: float) -> CompletedRun:
        mount = next(item for item in argv if item.startswith("type=bind"))
        directory = mount.split("source=", 1)[1].split(",target=", 1)[0]
        self.started.append(directory)
        await self.gates[directory].wait()
        return CompletedRun(returncode=0, stdout=self.outputs[directory])


class DummyWorkspace:
    def __init__(self, root_path: str | None = None) -> None:
        self.root_path = root_path
        self.documents: dict[str, TextDocument] = {}

    def put(self, uri: str, source: str, version: int = 1) -> TextDocument:
        document = TextDocument(uri, source, version=version)
        self.documents[uri] = document
        return document

    def get_text_document(self, uri: str) -> TextDocument:
        return self.documents[uri]


class DummyServer:
    """Stands in for the pygls server: records what would go over the wire."""

    def __init__(self, runner, *, root_path: str | None = None, accept_edits: bool = True) -> None:
        self.workspace = DummyWorkspace(root_path)
        self.sessions = SessionRegistry()
        self.analyzer_runner = runner
        self.initialization_options: object = None
        self.accept_edits = accept_edits
        self.settings = AnalyzerSettings(timeout_seconds=5.0)
        self.published: list[PublishDiagnosticsParams] = []
        self.logged: list[LogMessageParams] = []
        self.shown: list[ShowMessageParams] = []
        self.edits: list[ApplyWorkspaceEditParams] = []

    def settings_for(self, uri: str) -> AnalyzerSettings:
        return self.settings

    def text_document_publish_diagnostics(self, params: PublishDiagnosticsParams) -> None:
        self.published.append(params)

    def window_log_message(self, params: LogMessageParams) -> None:
        self.logged.append(params)

    def window_show_message(self, params: ShowMessageParams) -> None:
        self.shown.append(params)

    async def workspace_apply_edit_async(
        self, params: ApplyWorkspaceEditParams
    ) -> ApplyWorkspaceEditResult:
        self.edits.append(params)
        if not self.accept_edits:
            return ApplyWorkspaceEditResult(applied=False, failure_reason="document changed")
        for change in params.edit.document_changes or []:
            document = self.workspace.get_text_document(change.text_document.uri)
            source = document.source
            for edit in change.edits:
                offset = offset_at(document.lines, edit.range.start)
                source = source[:offset] + edit.new_text + source[offset:]
            self.workspace.put(document.uri, source, version=(document.version or 0) + 1)
        return ApplyWorkspaceEditResult(applied=True)

    def published_for(self, uri: str) -> list[PublishDiagnosticsParams]:
        return [params for params in self.published if params.uri == uri]


class WireTranscript:
    """Writer for a real pygls protocol that keeps every outgoing message."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    def write(self, data: bytes) -> None:
        self.messages.append(json.loads(data))

    def close(self) -> None:
        return None

    def notifications(self, method: str) -> list[dict[str, Any]]:
        return [message["params"] for message in self.messages if message.get("method") == method]

    async def wait_for(
        self, predicate: Callable[[dict[str, Any]], bool], timeout: float = 5.0
    ) -> dict[str, Any]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            for message in self.messages:
                if predicate(message):
                    return message
            if loop.time() > deadline:
                raise TimeoutError(f"no matching message among {self.messages!r}")
            await asyncio.sleep(0.01)

    async def response(self, msg_id: object) -> dict[str, Any]:
        return await self.wait_for(
            lambda message: message.get("id") == msg_id and "method" not in message
        )


def deliver(protocol, payload: dict[str, Any]) -> None:
    """Feed one client message through the protocol's own dispatch."""
    protocol.handle_message(protocol.structure_message({"jsonrpc": "2.0", **payload}))
