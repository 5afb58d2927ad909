from __future__ import annotations

import time


def clamp(v: float, lo: float, hi: float) -> float:
    return float(min(hi, max(lo, v)))


def timer_ms(func):
    """
    Decorator that returns (result, elapsed_ms) for timing single calls.
    """
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        out = func(*args, **kwargs)
        dt_ms = (time.perf_counter() - t0) * 1e3
        return out, dt_ms
    return wrapper
