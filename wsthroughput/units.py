"""Human-readable formatting of byte counts and transfer speeds."""

from __future__ import annotations

from datetime import timedelta

UNITS: tuple[str, ...] = ("Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")

_STEP = 1024.0


def _scale(amount: float) -> tuple[float, str]:
    """Divide by 1024 until below it (or the largest unit is reached)."""
    size = float(amount)
    for unit in UNITS[:-1]:
        if size < _STEP:
            return size, unit
        size /= _STEP
    return size, UNITS[-1]


def human_readable_bytes(num_bytes: int) -> str:
    """Format a byte count with one decimal place and a binary unit."""
    if num_bytes < 0:
        raise ValueError(f"byte count must not be negative: {num_bytes}")
    if num_bytes == 0:
        return "0 Bytes"
    size, unit = _scale(num_bytes)
    return f"{size:.1f} {unit}"


def human_readable_speed(num_bytes: int, elapsed_seconds: float | timedelta) -> str:
    """Format the rate of transferring ``num_bytes`` in ``elapsed_seconds``."""
    if isinstance(elapsed_seconds, timedelta):
        elapsed_seconds = elapsed_seconds.total_seconds()
    if num_bytes < 0:
        raise ValueError(f"byte count must not be negative: {num_bytes}")
    if elapsed_seconds < 0:
        raise ValueError(f"elapsed time must not be negative: {elapsed_seconds}")
    if elapsed_seconds == 0:
        return "0 Bytes/s"
    size, unit = _scale(num_bytes / elapsed_seconds)
    return f"{size:.1f} {unit}/s"