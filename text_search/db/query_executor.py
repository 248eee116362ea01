"""Timing and logging of stats store calls."""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generator

import logfire


@dataclass
class StatsCall:
    """Outcome of a stats store call, filled in by the caller."""

    operation: str
    target: str
    rows: int | None = None


@contextmanager
def timed_query(
    operation: str, target: str, **filters: Any
) -> Generator[StatsCall, None, None]:
    """
    Log one stats store call with its duration, filters and row count.

    A single line is logged when the call ends. Filters left as None are
    omitted. Exceptions are logged and re-raised.

    Args:
        operation: "insert", "select" or "rpc"
        target: Table or SQL function name
        **filters: Query filters included in the log line

    Example:
        with timed_query("select", "searches", text=query.text) as call:
            result = request.execute()
            call.rows = len(result.data)
    """
    call = StatsCall(operation=operation, target=target)
    context = {k: v for k, v in filters.items() if v is not None}
    start = time.perf_counter()

    try:
        yield call
    except Exception as e:
        logfire.error(
            "Stats store {operation} on {target} failed",
            operation=operation,
            target=target,
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            **context,
        )
        raise

    logfire.info(
        "Stats store {operation} on {target}",
        operation=operation,
        target=target,
        rows=call.rows,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
        **context,
    )
