from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

import typer

from sa4u_lsp.analyzer import ProcessRunner, run_analyzer, run_subprocess
from sa4u_lsp.config import AnalyzerSettings, resolve_settings
from sa4u_lsp.exceptions import AnalyzerInvocationError
from sa4u_lsp.extraction import Finding, parse_output
from sa4u_lsp.publisher import to_diagnostic
from sa4u_lsp.schema import FindingDTO, FindingReportDTO

app = typer.Typer(add_completion=False)

_STDIN_ALIAS = "-"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root = logging.getLogger("sa4u_lsp")
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    root.propagate = False


def finding_to_dto(finding: Finding) -> FindingDTO:
    diagnostic = to_diagnostic(finding)
    return FindingDTO.model_validate(
        {
            "category": finding.category.value,
            "severity": finding.severity.name,
            "source": finding.source_label,
            "line": finding.line_number,
            "range": {
                "start": {
                    "line": diagnostic.range.start.line,
                    "character": diagnostic.range.start.character,
                },
                "end": {
                    "line": diagnostic.range.end.line,
                    "character": diagnostic.range.end.character,
                },
            },
            "message": finding.message,
            "data": diagnostic.data,
        }
    )


def render_finding(finding: Finding) -> str:
    text = f"{finding.source_label}:{finding.line_number}: {finding.severity.name.lower()}: {finding.message}"
    if finding.repair is not None:
        text += f" [fix: {finding.repair.title}]"
    return text


def _emit(path: str, findings: Iterable[Finding], *, as_json: bool, errors: list[str]) -> None:
    findings = list(findings)
    if as_json:
        report = FindingReportDTO(
            path=path,
            findings=[finding_to_dto(finding) for finding in findings],
            errors=errors,
        )
        typer.echo(json.dumps(report.model_dump(), indent=2))
        return
    for finding in findings:
        typer.echo(render_finding(finding))
    for error in errors:
        typer.echo(f"error: {error}", err=True)


def run_check(
    path: Path,
    settings: AnalyzerSettings,
    *,
    runner: ProcessRunner = run_subprocess,
) -> list[Finding]:
    """Analyze the directory holding ``path`` (or ``path`` itself if it is one)."""
    directory = path if path.is_dir() else path.parent
    output = asyncio.run(run_analyzer(directory.resolve(), settings, runner=runner))
    return parse_output(output)


@app.command("serve")
def serve(
    tcp: bool = typer.Option(False, "--tcp", help="Listen on TCP instead of stdio."),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(2087, "--port"),
    log_level: str = typer.Option("warning", "--log-level"),
) -> None:
    """Run the SA4U language server."""
    from sa4u_lsp.server import server, start

    configure_logging(log_level)
    if tcp:
        start(lambda: server.start_tcp(host, port))
    else:
        start()


@app.command("check")
def check(
    path: Path = typer.Argument(..., exists=True),
    root: Optional[Path] = typer.Option(None, "--root", help="Directory holding sa4u.toml."),
    config: Optional[Path] = typer.Option(None, "--config"),
    as_json: bool = typer.Option(False, "--json"),
    log_level: str = typer.Option("warning", "--log-level"),
) -> None:
    """Run the analyzer on the directory holding PATH and print its findings."""
    configure_logging(log_level)
    settings = resolve_settings(root, config_path=config)
    try:
        findings = run_check(path, settings)
    except AnalyzerInvocationError as exc:
        _emit(str(path), [], as_json=as_json, errors=[str(exc)])
        raise typer.Exit(code=2)
    _emit(str(path), findings, as_json=as_json, errors=[])
    if findings:
        raise typer.Exit(code=1)


@app.command("parse")
def parse(
    output: str = typer.Argument(
        ..., help="Saved analyzer output, or '-' to read standard input."
    ),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Parse saved analyzer output without running the analyzer."""
    if output == _STDIN_ALIAS:
        text = sys.stdin.read()
    else:
        source = Path(output)
        if not source.is_file():
            raise typer.BadParameter(f"no such file: {output}")
        text = source.read_text(encoding="utf-8", errors="replace")
    _emit(output, parse_output(text), as_json=as_json, errors=[])


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
