"""Invocation of the containerized SA4U analyzer."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Sequence
from urllib.parse import unquote, urlparse

from sa4u_lsp.config import AnalyzerSettings
from sa4u_lsp.exceptions import AnalyzerInvocationError

LOGGER = logging.getLogger(__name__)

CONTAINER_SOURCE_DIR = "/src/"


@dataclass(frozen=True)
class CompletedRun:
    returncode: int
    stdout: str
    stderr: str = ""


ProcessRunner = Callable[[Sequence[str], float], Awaitable[CompletedRun]]


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(unquote(uri))


def document_directory(uri: str) -> Path:
    return uri_to_path(uri).parent


def analyzer_command(directory: Path, settings: AnalyzerSettings) -> list[str]:
    return [
        settings.runtime,
        "container",
        "run",
        "--rm",
        "--mount",
        f"type=bind,source={directory},target={CONTAINER_SOURCE_DIR}",
        settings.image,
        "-c",
        CONTAINER_SOURCE_DIR,
        "-p",
        f"{CONTAINER_SOURCE_DIR}{settings.priors}",
        "-m",
        f"{CONTAINER_SOURCE_DIR}{settings.model}",
    ]


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        return
    await process.wait()


async def run_subprocess(argv: Sequence[str], timeout: float) -> CompletedRun:
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except BaseException:
        # Timeout or cancellation: the container must not outlive the request.
        await asyncio.shield(_terminate(process))
        raise
    return CompletedRun(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def run_analyzer(
    directory: Path,
    settings: AnalyzerSettings,
    *,
    runner: ProcessRunner = run_subprocess,
) -> str:
    """Run the analyzer over ``directory`` and return its standard output.

    Raises ``AnalyzerInvocationError`` when the runtime cannot be started with
    these arguments, when the analyzer exits non-zero, or when no result
    arrives within ``settings.timeout_seconds``. Cancellation propagates
    unchanged.
    """
    argv = analyzer_command(directory, settings)
    LOGGER.debug("running analyzer: %s", " ".join(argv))
    try:
        result = await runner(argv, settings.timeout_seconds)
    except TimeoutError as exc:
        raise AnalyzerInvocationError(
            f"analyzer timed out after {settings.timeout_seconds:g}s",
            timed_out=True,
        ) from exc
    except (OSError, ValueError) as exc:
        # ValueError: an argument the OS cannot pass, e.g. a NUL from %00 in the URI.
        raise AnalyzerInvocationError(
            f"could not start {settings.runtime}: {exc}"
        ) from exc
    if result.returncode != 0:
        raise AnalyzerInvocationError(
            f"analyzer exited with status {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result.stdout
