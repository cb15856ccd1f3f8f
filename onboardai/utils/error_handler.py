"""Error Handler - classifies provider failures and formats diagnostic messages."""

from typing import Optional

OVERLOAD_MARKERS = ("overloaded", "503", "UNAVAILABLE")
RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "rate limit")


def _status_code(error: Exception) -> Optional[int]:
    """Read an HTTP status off SDK exceptions (openai uses status_code, google-genai uses code)."""
    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def transient_reason(error: Exception) -> Optional[str]:
    """
    Classify an LLM failure as overload or rate limit.

    Args:
        error: The exception raised by the provider SDK

    Returns:
        "llm_overloaded", "llm_rate_limited" or None for terminal errors
    """
    status = _status_code(error)
    if status == 429:
        return "llm_rate_limited"
    if status == 503:
        return "llm_overloaded"

    message = str(error)
    lowered = message.lower()
    if any(marker in message or marker.lower() in lowered for marker in RATE_LIMIT_MARKERS):
        return "llm_rate_limited"
    if any(marker in message or marker.lower() in lowered for marker in OVERLOAD_MARKERS):
        return "llm_overloaded"
    return None


def is_transient_error(error: Exception) -> bool:
    """True when the failure is worth retrying after a backoff."""
    return transient_reason(error) is not None


def user_facing_message(reason: Optional[str], fallback: str) -> str:
    """Message shown to callers for LLM failures."""
    if reason == "llm_overloaded":
        return "The LLM API is currently overloaded. Please try again in a few moments."
    if reason == "llm_rate_limited":
        return "Rate limit exceeded. Please wait a moment and try again."
    return fallback


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a diagnostic error message.

    Args:
        operation: What operation was being performed (e.g., "Rendering frame")
        error: The exception that occurred
        context: Additional context (e.g., {"scene_id": "scene-2", "provider": "elevenlabs"})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    error_msg = str(error)

    # Build context string
    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    # Build message
    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error_msg}"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_fallback_suggestion(service: str, error: Exception) -> Optional[str]:
    """
    Get a suggestion for how a stage degrades after a failure.

    Args:
        service: Service name ("TTS", "Frame Rendering", "Segment Encoding", "LLM")
        error: The exception

    Returns:
        Suggestion string or None
    """
    error_msg = str(error).lower()

    if service == "TTS":
        if "api key" in error_msg or "401" in error_msg:
            return "Check ELEVENLABS_API_KEY in .env file. Trying the next provider."
        elif "rate limit" in error_msg or "429" in error_msg:
            return "Provider rate limit exceeded. Trying the next provider."
        elif "timeout" in error_msg or "connection" in error_msg:
            return "Network error. Check your internet connection. Trying the next provider."
        else:
            return "TTS provider failed. Trying the next provider; silence is used if all fail."

    elif service == "Frame Rendering":
        return "Scene will be skipped for this run."

    elif service == "Segment Encoding":
        if "no such file" in error_msg or "not found" in error_msg:
            return "Is ffmpeg installed and on PATH? Scene will be skipped."
        return "Scene will be skipped for this run."

    elif service == "LLM":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check GEMINI_API_KEY / OPENAI_API_KEY in .env file."
        elif is_transient_error(error):
            return "Provider is overloaded or rate limited. Retrying with backoff."
        else:
            return None

    return None
