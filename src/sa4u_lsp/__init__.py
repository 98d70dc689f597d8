"""SA4U language server package root."""

from sa4u_lsp.exceptions import (
    AnalyzerInvocationError,
    FixPayloadError,
    FixRejected,
    NeverThrown,
    Sa4uError,
    StaleDocumentError,
)
from sa4u_lsp.invariants import never

__all__ = [
    "__version__",
    "AnalyzerInvocationError",
    "FixPayloadError",
    "FixRejected",
    "NeverThrown",
    "Sa4uError",
    "StaleDocumentError",
    "never",
]

__version__ = "0.1.0"
