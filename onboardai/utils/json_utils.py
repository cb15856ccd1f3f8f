"""Helpers for reading JSON out of model responses."""

# This module is part of onboardai.utils package

import json
from typing import Any, Optional


def try_parse_json(text: str) -> tuple[bool, Any]:
    """
    Parse text as JSON without raising.

    Returns:
        (True, value) on success, (False, None) otherwise.
    """
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return False, None


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the substring between the first '{' and the last '}'.

    Recovers objects wrapped in prose or markdown fences, e.g.
    "Sure! ```json {...} ```".
    """
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return text[start : end + 1]


def salvage_json_object(text: str) -> tuple[bool, Any]:
    """Parse the outermost brace-delimited span of text."""
    candidate = extract_json_object(text)
    if candidate is None:
        return False, None
    return try_parse_json(candidate)
