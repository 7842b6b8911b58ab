"""Phase timing for the render pipeline.

Enabled with the SESSION_REVIEW_DEBUG_TIMING environment variable; every
helper here is a no-op otherwise. Output goes to stderr so it never mixes
with rendered transcript text on stdout.
"""

import os
import sys
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Tuple, Union

# Set to "1", "true", or "yes" to enable timing output
DEBUG_TIMING = os.getenv("SESSION_REVIEW_DEBUG_TIMING", "").lower() in (
    "1",
    "true",
    "yes",
)

def _emit(text: str) -> None:
    print(f"[TIMING] {text}", file=sys.stderr, flush=True)


@contextmanager
def log_timing(
    phase: Union[str, Callable[[], str]],
    t_start: Optional[float] = None,
) -> Iterator[None]:
    """Context manager for logging phase timing.

    Args:
        phase: Phase name, or a callable evaluated at the end of the phase
            (for names that mention results, e.g. line counts)
        t_start: Optional pipeline start time for the running total

    Example:
        with log_timing(lambda: f"Classify ({len(lines)} lines)", t_start):
            lines = classify_blocks(messages, ctx)
    """
    if not DEBUG_TIMING:
        yield
        return

    t_phase_start = time.time()
    try:
        yield
    finally:
        t_now = time.time()
        phase_time = t_now - t_phase_start
        phase_name = phase() if callable(phase) else phase
        if t_start is not None:
            _emit(
                f"{phase_name:40s} {phase_time:8.3f}s (total: {t_now - t_start:8.3f}s)"
            )
        else:
            _emit(f"{phase_name:40s} {phase_time:8.3f}s")


@contextmanager
def timing_stat(timings: list[Tuple[float, str]], label: str) -> Iterator[None]:
    """Append ``(duration, label)`` for the block to ``timings``.

    The list belongs to the caller, so concurrent renders never share one.
    """
    if not DEBUG_TIMING:
        yield
        return

    t_start = time.time()
    try:
        yield
    finally:
        timings.append((time.time() - t_start, label))


def report_timing_statistics(
    operation_timings: list[Tuple[str, list[Tuple[float, str]]]],
) -> None:
    """Report totals and the slowest entries per operation.

    Args:
        operation_timings: (name, [(duration, label), ...]) pairs
    """
    if not DEBUG_TIMING:
        return
    for operation_name, timings in operation_timings:
        if not timings:
            continue
        sorted_ops = sorted(timings, key=lambda x: x[0], reverse=True)
        total_time = sum(t[0] for t in timings)
        _emit(f"{operation_name}:")
        _emit(f"  Total operations: {len(timings)}")
        _emit(f"  Total time: {total_time:.3f}s")
        _emit("  Slowest 5 operations:")
        for duration, label in sorted_ops[:5]:
            _emit(f"    {label}: {duration * 1000:.1f}ms")
