from __future__ import annotations

_UNITS = ("KB", "MB", "GB", "TB", "PB")


def format_bytes(num: int) -> str:
    """Human readable size with binary multiples, e.g. ``1.50 KB``."""
    if num < 1024:
        return f"{num} B" if num >= 0 else str(num)
    value = num / 1024.0
    for unit in _UNITS[:-1]:
        if value < 1024.0:
            return f"{value:.2f} {unit}"
        value /= 1024.0
    return f"{value:.2f} {_UNITS[-1]}"


def clamp(value, low, high):
    return max(low, min(high, value))


def shorten_middle(text: str, limit: int = 140, keep: int = 60) -> str:
    """Keep both ends of long paths readable in a single status line."""
    if len(text) <= limit:
        return text
    return text[:keep] + " … " + text[-keep:]
