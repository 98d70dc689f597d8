from sa4u_lsp.quickfix.applicator import (
    apply_fix,
    build_fix_edit,
    insertion_offset,
    offset_at,
    position_at,
)
from sa4u_lsp.quickfix.payload import (
    FixRequest,
    parse_fix_arguments,
    repair_from_data,
)
from sa4u_lsp.quickfix.resolver import FIX_COMMAND, resolve_quick_fixes

__all__ = [
    "FIX_COMMAND",
    "FixRequest",
    "apply_fix",
    "build_fix_edit",
    "insertion_offset",
    "offset_at",
    "parse_fix_arguments",
    "position_at",
    "repair_from_data",
    "resolve_quick_fixes",
]
