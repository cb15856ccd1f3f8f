"""LLM Client - centralized Gemini/OpenAI client for script synthesis."""

import time
from typing import Any, Optional

from google import genai
from google.genai import types
from openai import OpenAI

from onboardai.core.config import Settings
from onboardai.core.exceptions import ConfigurationError, LLMError, TransientLLMError
from onboardai.utils.error_handler import transient_reason, user_facing_message

PING_PROMPT = "Reply with exactly: OnboardAI LLM OK"


class LLMClient:
    """Centralized LLM client; Gemini by default, OpenAI when LLM_PROVIDER=openai."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize LLM client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.provider = settings.llm_provider.lower()
        self._client = None

    @property
    def default_model(self) -> str:
        return self.settings.openai_model if self.provider == "openai" else self.settings.gemini_model

    def ensure_configured(self) -> None:
        """
        Check credentials without touching the network.

        Raises:
            ConfigurationError: If the provider is unknown or its API key is missing
        """
        if self.provider == "gemini":
            if not self.settings.gemini_api_key:
                raise ConfigurationError("Missing GEMINI_API_KEY", config_key="GEMINI_API_KEY")
        elif self.provider == "openai":
            if not self.settings.openai_api_key:
                raise ConfigurationError("Missing OPENAI_API_KEY", config_key="OPENAI_API_KEY")
        else:
            raise ConfigurationError(f"Unknown LLM provider: {self.provider}", config_key="LLM_PROVIDER")

    def _get_client(self):
        """Get or create the provider SDK client."""
        if self._client is None:
            self.ensure_configured()
            if self.provider == "openai":
                self._client = OpenAI(api_key=self.settings.openai_api_key)
            else:
                self._client = genai.Client(api_key=self.settings.gemini_api_key)
        return self._client

    def _generate_once(self, prompt: str, model: str, json_output: bool) -> str:
        client = self._get_client()

        if self.provider == "openai":
            kwargs: dict[str, Any] = {}
            if json_output:
                kwargs["response_format"] = {"type": "json_object"}
            response = client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.settings.llm_temperature,
                **kwargs,
            )
            return response.choices[0].message.content or ""

        config = types.GenerateContentConfig(
            temperature=self.settings.llm_temperature,
            response_mime_type="application/json" if json_output else None,
        )
        response = client.models.generate_content(model=model, contents=prompt, config=config)
        return response.text or ""

    def generate(self, prompt: str, model: Optional[str] = None, json_output: bool = True) -> str:
        """
        Generate text, retrying when the provider is overloaded or rate limited.

        Attempts are separated by base * 2**(attempt-1) seconds (2s, 4s, ...);
        any other failure is terminal immediately.

        Args:
            prompt: Full prompt text
            model: Model name (defaults to the provider's configured model)
            json_output: Request JSON-only output

        Returns:
            Raw response text

        Raises:
            ConfigurationError: If credentials are missing
            TransientLLMError: If every attempt was overloaded or rate limited
            LLMError: On any other provider failure
        """
        model = model or self.default_model
        max_attempts = max(1, self.settings.llm_max_attempts)

        for attempt in range(1, max_attempts + 1):
            try:
                return self._generate_once(prompt, model, json_output)
            except ConfigurationError:
                raise
            except Exception as e:
                reason = transient_reason(e)
                if reason is None:
                    self.logger.error(f"LLM call to {model} failed: {e}")
                    raise LLMError(str(e)) from e

                if attempt >= max_attempts:
                    self.logger.error(f"LLM still unavailable after {attempt} attempts ({reason})")
                    raise TransientLLMError(
                        user_facing_message(reason, str(e)), reason=reason, attempts=attempt
                    ) from e

                delay = self.settings.llm_backoff_base_seconds * 2 ** (attempt - 1)
                self.logger.warning(f"LLM {reason} (attempt {attempt}/{max_attempts}); retrying in {delay:g}s")
                time.sleep(delay)

        raise LLMError("Failed to generate content after retries")

    def list_models(self) -> list[dict[str, Any]]:
        """
        List models available to the configured key.

        Returns:
            Dicts with name, displayName and supportedActions (Gemini) or name (OpenAI)
        """
        client = self._get_client()
        try:
            if self.provider == "openai":
                return [{"name": m.id} for m in client.models.list()]
            return [
                {
                    "name": m.name,
                    "displayName": getattr(m, "display_name", None),
                    "supportedActions": getattr(m, "supported_actions", None),
                }
                for m in client.models.list(config={"page_size": 100})
            ]
        except Exception as e:
            raise LLMError(f"Could not list models: {e}") from e

    def ping(self, model: Optional[str] = None) -> str:
        """Send a tiny prompt to confirm the key and model work."""
        return self.generate(PING_PROMPT, model=model, json_output=False).strip()
