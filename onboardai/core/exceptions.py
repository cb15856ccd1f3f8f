"""Exception hierarchy shared by the ingestion, scripting and rendering stages.

Every error carries a machine-readable ``reason`` and a ``retryable`` hint so
the HTTP layer and the CLI can tell callers whether resubmitting makes sense.
"""

from typing import Any, Optional


class OnboardAIError(Exception):
    """Base exception for all OnboardAI errors."""

    reason = "internal_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.reason
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a response payload."""
        payload: dict[str, Any] = {
            "ok": False,
            "error": self.message,
            "reason": self.reason,
            "retryable": self.retryable,
        }
        payload.update(self.details)
        return payload


class ConfigurationError(OnboardAIError):
    """A required credential or setting is missing."""

    reason = "missing_credential"

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, details=details)


class InvalidRequestError(OnboardAIError):
    """The caller sent an incomplete or malformed request."""

    reason = "invalid_request"
    status_code = 400


class InvalidLocatorError(OnboardAIError):
    """The repository locator cannot be parsed."""

    reason = "invalid_locator"
    status_code = 400


class RepositoryNotFoundError(OnboardAIError):
    """The repository does not exist or is not accessible."""

    reason = "repository_not_found"
    status_code = 404


class LLMError(OnboardAIError):
    """Terminal LLM failure (not worth retrying)."""

    reason = "llm_error"


class TransientLLMError(LLMError):
    """LLM was overloaded or rate limited on every attempt."""

    reason = "llm_overloaded"

    def __init__(self, message: str, reason: Optional[str] = None, attempts: int = 0):
        super().__init__(message, reason=reason, details={"attempts": attempts}, retryable=True)


class ModelOutputError(OnboardAIError):
    """The model never returned parseable JSON."""

    reason = "model_output_not_json"

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message, details={"raw": raw})
        self.raw = raw


class SchemaRepairError(OnboardAIError):
    """The model's JSON could not be repaired into a valid onboarding script."""

    reason = "invalid_script_schema"

    def __init__(self, message: str, issues: list[dict[str, Any]], raw: Any, attempted_fix: Any):
        super().__init__(
            message,
            details={"issues": issues, "raw": raw, "attemptedFix": attempted_fix},
        )
        self.issues = issues
        self.raw = raw
        self.attempted_fix = attempted_fix


class ExternalToolError(OnboardAIError):
    """An external tool (ffmpeg, ffprobe) could not be run or exited non-zero."""

    reason = "external_tool_failed"

    def __init__(self, message: str, program: str, returncode: Optional[int] = None, stderr: str = ""):
        details: dict[str, Any] = {"program": program}
        if returncode is not None:
            details["returncode"] = returncode
        if stderr:
            # ffmpeg prints the interesting part last
            details["stderr"] = stderr[-500:]
        super().__init__(message, details=details)
        self.program = program
        self.returncode = returncode
        self.stderr = stderr


class LocalAssetError(OnboardAIError):
    """A single scene asset (audio, frame, segment) could not be produced."""

    reason = "local_asset_failed"


class NoSegmentsError(OnboardAIError):
    """Rendering produced no segment at all."""

    reason = "no_segments_produced"


class AssemblyError(OnboardAIError):
    """Concatenating the segments into one video failed."""

    reason = "concatenation_failed"


class PipelineError(OnboardAIError):
    """A run ended in the errored state; wraps the terminal cause with its stage."""

    def __init__(self, stage: str, cause: Exception):
        if isinstance(cause, OnboardAIError):
            reason = cause.reason
            retryable = cause.retryable
            details = dict(cause.details)
            self.status_code = cause.status_code
        else:
            reason = "internal_error"
            retryable = False
            details = {}
        details["stage"] = stage
        super().__init__(str(cause), reason=reason, details=details, retryable=retryable)
        self.stage = stage
        self.cause = cause
