from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass

from quotedesk.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SideEffectOutcome:
    name: str
    succeeded: bool
    error: str | None = None


async def run_side_effect(name: str, operation: Awaitable[None]) -> SideEffectOutcome:
    """Await ``operation`` and report how it went instead of raising.

    Caching and auditing are optional steps of a portfolio request, so their
    failures are logged and recorded here and never reach the main result.
    """
    try:
        await operation
    except Exception as exc:
        logger.warning("Side effect failed", side_effect=name, error=repr(exc))
        return SideEffectOutcome(name=name, succeeded=False, error=repr(exc))
    return SideEffectOutcome(name=name, succeeded=True)
