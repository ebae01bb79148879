"""Flush-cycle context tracking for log correlation.

Each flush cycle runs inside a ``FlushContext`` stored in a context
variable, so every log line emitted while the cycle is active (including
lines from dispatch functions awaited by the cycle) can be tagged with the
same short cycle id.

Usage:
    from offline_queue.core.tracing import flush_context, get_current_context

    with flush_context(pending=3) as ctx:
        logger.info("dispatching")  # formatted as "[flush=ab12cd34ef56] dispatching"
        print(ctx.elapsed_ms())
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

from offline_queue.core.utils import utc_now


@dataclass
class FlushContext:
    """Context information for one flush cycle.

    Attributes:
        cycle_id: Unique identifier for the cycle (first 12 chars of a UUID).
        pending: Number of items in the snapshot when the cycle started.
        started_at: When the cycle started.
    """

    cycle_id: str
    pending: int
    started_at: datetime

    @classmethod
    def create(cls, pending: int) -> FlushContext:
        """Create a new flush context with an auto-generated id."""
        return cls(cycle_id=uuid.uuid4().hex[:12], pending=pending, started_at=utc_now())

    def elapsed_ms(self) -> float:
        """Elapsed time since the cycle started, in milliseconds."""
        return (utc_now() - self.started_at).total_seconds() * 1000


_context: contextvars.ContextVar[FlushContext | None] = contextvars.ContextVar(
    "flush_context", default=None
)


def get_current_context() -> FlushContext | None:
    """Get the active flush context, or None outside a flush cycle."""
    return _context.get()


def set_context(ctx: FlushContext) -> Token[FlushContext | None]:
    """Set the current flush context and return a reset token."""
    return _context.set(ctx)


def clear_context(token: Token[FlushContext | None]) -> None:
    """Reset the context to its previous value."""
    _context.reset(token)


@contextmanager
def flush_context(pending: int) -> Generator[FlushContext, None, None]:
    """Context manager that activates a new ``FlushContext``.

    Args:
        pending: Number of items in the cycle's snapshot.

    Yields:
        The created FlushContext.
    """
    ctx = FlushContext.create(pending)
    token = set_context(ctx)
    try:
        yield ctx
    finally:
        clear_context(token)
