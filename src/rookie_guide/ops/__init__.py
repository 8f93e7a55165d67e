"""
Operations layer: transport-agnostic business operations for Rookie Guide.

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- Mutating functions honour ``ctx.dry_run``

Usage::

    from rookie_guide.ops import OperationContext
    from rookie_guide.ops.checklists import fork_template
    from rookie_guide.ops.requests import ForkTemplateRequest

    ctx = OperationContext(conn=conn, user="u-1")
    result = fork_template(ctx, ForkTemplateRequest(template_id="t-1"))
    assert result.success
"""

from rookie_guide.ops.context import OperationContext
from rookie_guide.ops.result import OperationError, OperationResult

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
]
