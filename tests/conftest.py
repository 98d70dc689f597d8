from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from sa4u_lsp.analyzer import CompletedRun
from tests.harness.server_command_harness import (
    CALL_LINE,
    STORE_LINE,
    DummyServer,
    ScriptedRunner,
    analyzer_output,
)


@pytest.fixture
def sample_source() -> str:
    return (
        "int main() {\r\n"
        "  float speed_mph = read();\r\n"
        "  setSpeed(speed_mph);\r\n"
        "}\r\n"
    )


@pytest.fixture
def sample_uri(tmp_path: Path) -> str:
    return (tmp_path / "foo.cpp").as_uri()


@pytest.fixture
def store_and_call_output() -> str:
    return analyzer_output(
        "SA4U starting analysis",
        STORE_LINE.format(line=2),
        CALL_LINE.format(line=3),
    )


@pytest.fixture
def dummy_server(store_and_call_output: str) -> DummyServer:
    return DummyServer(ScriptedRunner(CompletedRun(returncode=0, stdout=store_and_call_output)))
