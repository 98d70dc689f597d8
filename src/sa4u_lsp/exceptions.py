"""Error taxonomy for the SA4U language server."""

from __future__ import annotations


class Sa4uError(RuntimeError):
    pass


class AnalyzerInvocationError(Sa4uError):
    """The external analyzer could not produce output.

    Covers a non-zero exit, an OS-level failure to start the container runtime
    and a timeout. The validation path recovers from it by publishing an empty
    diagnostic set.
    """

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out


class FixRejected(Sa4uError):
    """A quick fix was selected but cannot be applied."""


class FixPayloadError(FixRejected):
    pass


class StaleDocumentError(FixRejected):
    def __init__(self, message: str, *, expected: int | None, actual: int | None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class NeverThrown(Sa4uError):
    """Raised by ``never()`` when a branch believed unreachable runs."""

    def __init__(self, message: str, *, env: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.env = dict(env or {})
