"""
Formatting utilities for dupematch.

Provides human-readable formatting for counts, durations and similarity scores
used in log messages.
"""

from __future__ import annotations


def format_number(n: int) -> str:
    """
    Format large numbers with commas for readability.

    Examples:
        >>> format_number(1000)
        '1,000'
        >>> format_number(1234567)
        '1,234,567'
    """
    return f"{n:,}"


def format_time_estimate(seconds: float) -> str:
    """
    Format seconds into human-readable time estimate.

    Examples:
        >>> format_time_estimate(45)
        '45s'
        >>> format_time_estimate(150)
        '2m 30s'
        >>> format_time_estimate(3665)
        '1h 1m'
    """
    if seconds < 60:
        return f"{int(seconds)}s"
    elif seconds < 3600:
        return f"{int(seconds / 60)}m {int(seconds % 60)}s"
    else:
        hours = int(seconds / 3600)
        minutes = int((seconds % 3600) / 60)
        return f"{hours}h {minutes}m"


def format_similarity(similarity: float) -> str:
    """
    Format a 0-100 similarity score with one decimal.

    Examples:
        >>> format_similarity(97.34)
        '97.3%'
    """
    return f"{similarity:.1f}%"


__all__ = ['format_number', 'format_time_estimate', 'format_similarity']
