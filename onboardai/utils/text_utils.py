"""Text utility functions for narration and prompt building."""

# This module is part of onboardai.utils package

import math

WORDS_PER_SECOND = 2.5
MIN_SCENE_SECONDS = 5
TRUNCATION_MARKER = "\n\n...[truncated]..."


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def estimate_spoken_duration(text: str, words_per_second: float = WORDS_PER_SECOND) -> int:
    """
    Estimate the spoken duration of narration in whole seconds.

    150 words per minute (2.5 words/second), rounded up and never shorter
    than five seconds so a scene always has a watchable length.

    Args:
        text: Narration text.
        words_per_second: Average speaking rate.

    Returns:
        Estimated duration in seconds.
    """
    return max(MIN_SCENE_SECONDS, math.ceil(count_words(text) / words_per_second))


def truncate_text(text: str, max_chars: int) -> str:
    """
    Truncate text for prompt embedding, marking the cut.

    Args:
        text: Input text.
        max_chars: Maximum characters kept before the marker.

    Returns:
        The text unchanged if short enough, else its head plus a truncation marker.
    """
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER
