"""TTS (Text-to-Speech) providers for scene narration."""

from abc import ABC, abstractmethod
from typing import Any

import requests

from onboardai.core.config import Settings

BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class TTSProviderError(Exception):
    """A single provider could not produce audio; the caller moves on to the next one."""


class TTSProvider(ABC):
    """One speech backend. Returns audio bytes or raises TTSProviderError."""

    name = "tts"

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the provider.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def is_available(self) -> bool:
        """Whether the provider is configured for use."""
        return True

    @abstractmethod
    def synthesize(self, text: str) -> bytes:
        """Convert text to audio bytes."""

    def _fetch(self, method: str, url: str, **kwargs: Any) -> bytes:
        try:
            response = requests.request(method, url, timeout=self.settings.tts_timeout_seconds, **kwargs)
        except requests.exceptions.RequestException as e:
            raise TTSProviderError(f"Network error calling {self.name}: {e}") from e

        if response.status_code != 200:
            raise TTSProviderError(f"{self.name} returned status {response.status_code}")
        if not response.content:
            raise TTSProviderError(f"{self.name} returned an empty body")
        return response.content


class GoogleTranslateTTS(TTSProvider):
    """Free Google Translate endpoint; only accepts short inputs."""

    name = "google_translate"
    url = "https://translate.google.com/translate_tts"

    def synthesize(self, text: str) -> bytes:
        params = {
            "ie": "UTF-8",
            "q": text[: self.settings.google_tts_max_chars],
            "tl": "en",
            "client": "tw-ob",
        }
        return self._fetch("GET", self.url, params=params, headers={"User-Agent": BROWSER_USER_AGENT})


class ElevenLabsTTS(TTSProvider):
    """ElevenLabs premium voices (requires ELEVENLABS_API_KEY)."""

    name = "elevenlabs"

    def is_available(self) -> bool:
        return bool(self.settings.elevenlabs_api_key)

    def synthesize(self, text: str) -> bytes:
        if not self.settings.elevenlabs_api_key:
            raise TTSProviderError("ElevenLabs API key not configured")

        url = f"https://api.elevenlabs.io/v1/text-to-speech/{self.settings.elevenlabs_voice_id}"
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }
        data = {
            "text": text,
            "model_id": self.settings.elevenlabs_model,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
            },
        }
        return self._fetch("POST", url, json=data, headers=headers)


class ResponsiveVoiceTTS(TTSProvider):
    """Free ResponsiveVoice endpoint. Tiny bodies are error pages, not audio."""

    name = "responsivevoice"
    url = "https://responsivevoice.org/responsivevoice/getvoice.php"
    min_audio_bytes = 100

    def synthesize(self, text: str) -> bytes:
        content = self._fetch("GET", self.url, params={"t": text, "tl": "en"})
        if len(content) <= self.min_audio_bytes:
            raise TTSProviderError(f"{self.name} returned {len(content)} bytes, not audio")
        return content


def default_providers(settings: Settings, logger: Any) -> list[TTSProvider]:
    """Providers in fallback order: free Google Translate, ElevenLabs, ResponsiveVoice."""
    return [
        GoogleTranslateTTS(settings, logger),
        ElevenLabsTTS(settings, logger),
        ResponsiveVoiceTTS(settings, logger),
    ]
