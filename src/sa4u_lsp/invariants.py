"""Invariant markers."""

from __future__ import annotations

from typing import NoReturn

from sa4u_lsp.exceptions import NeverThrown


def _render_env(env: dict[str, object]) -> str:
    return ", ".join(f"{key}={env[key]!r}" for key in sorted(env))


def never(reason: str = "", **env: object) -> NoReturn:
    message = reason or "never() marker reached"
    if env:
        message = f"{message} ({_render_env(env)})"
    raise NeverThrown(message, env=env)
