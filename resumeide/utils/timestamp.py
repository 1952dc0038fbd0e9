"""Timestamp formatting utilities."""

from datetime import datetime


def now() -> str:
    """Current local time as a filesystem-safe stamp, e.g. "20251114_123456"."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def format_duration(seconds: float) -> str:
    """
    Format an elapsed time compactly.

    Examples:
        format_duration(0.4)    # "400ms"
        format_duration(2.346)  # "2.35s"
        format_duration(95)     # "1m 35s"
    """
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s"
