"""
Request deadlines expressed as absolute ``time.monotonic()`` values
"""
import time
from typing import Optional

from backend.errors import RequestTimeout


def deadline_after(seconds: Optional[float]) -> Optional[float]:
    """Absolute deadline ``seconds`` from now, or None for no deadline"""
    if seconds is None:
        return None
    return time.monotonic() + seconds


def remaining(deadline: Optional[float]) -> Optional[float]:
    """Seconds left before ``deadline`` (never negative), None without a deadline"""
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def check_deadline(deadline: Optional[float], step: str) -> None:
    """Raise RequestTimeout when the deadline has passed before ``step``"""
    if deadline is not None and time.monotonic() >= deadline:
        raise RequestTimeout(f"request deadline exceeded before {step}")
