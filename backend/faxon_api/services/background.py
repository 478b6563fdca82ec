"""
Faxon Portal API — Best-Effort Background Work
===============================================

What:  Runs provider calls that must never affect the response already sent.
How:   Routes schedule `run_best_effort` through FastAPI BackgroundTasks; any
       exception is logged on the `faxon.background` logger and dropped.
       Nothing is retried.
"""

import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger("faxon.background")


async def run_best_effort(
    label: str,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    **kwargs: Any,
) -> bool:
    """
    Await `func(*args, **kwargs)` and report whether it succeeded.

    Args:
        label: Short name for the log line, e.g. "zoho_delete"
        func:  Coroutine function to run
    """
    try:
        await func(*args, **kwargs)
    except Exception as e:
        context = getattr(e, "context", None)
        logger.error(
            "Background task %s failed: %s%s",
            label,
            str(e),
            f" | Context: {context}" if context else "",
            exc_info=True,
        )
        return False

    logger.info("Background task %s completed", label)
    return True
