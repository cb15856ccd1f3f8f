"""Narration Engine - turns scene narration into audio files."""

from pathlib import Path
from typing import Any, Optional

from pydub import AudioSegment

from onboardai.core.config import Settings
from onboardai.core.exceptions import LocalAssetError
from onboardai.models.schemas import AudioAsset
from onboardai.services.tts_client import TTSProvider, default_providers
from onboardai.utils.error_handler import format_error_message, get_fallback_suggestion
from onboardai.utils.text_utils import estimate_spoken_duration


class NarrationEngine:
    """Produces one audio file per scene, falling back across providers and finally to silence."""

    def __init__(self, settings: Settings, logger: Any, providers: Optional[list[TTSProvider]] = None):
        """
        Initialize the narration engine.

        Args:
            settings: Application settings
            logger: Logger instance
            providers: TTS providers in fallback order (defaults to the built-in chain)
        """
        self.settings = settings
        self.logger = logger
        self.providers = providers if providers is not None else default_providers(settings, logger)

    def synthesize(self, asset_id: str, text: str, audio_dir: Path) -> AudioAsset:
        """
        Generate narration audio for a scene.

        The first provider returning audio wins. Every provider failure is
        logged and the next provider is tried; when all fail a silent track of
        the estimated spoken duration is written instead.

        Args:
            asset_id: Scene id (used for the file name and logs)
            text: Narration text
            audio_dir: Directory the audio file is written to

        Returns:
            Persisted audio asset

        Raises:
            LocalAssetError: If even the silent placeholder cannot be written
        """
        for provider in self.providers:
            if not provider.is_available():
                continue
            try:
                data = provider.synthesize(text)
            except Exception as e:
                self.logger.warning(
                    format_error_message(
                        "Speech synthesis",
                        e,
                        context={"scene_id": asset_id, "provider": provider.name},
                        suggestion=get_fallback_suggestion("TTS", e),
                    )
                )
                continue

            path = audio_dir / f"{asset_id}.mp3"
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)
            except OSError as e:
                raise LocalAssetError(f"Could not write audio for {asset_id}: {e}") from e

            self.logger.info(f"Narration for {asset_id} generated by {provider.name} ({len(data)} bytes)")
            return AudioAsset(asset_id=asset_id, path=path, data=data, provider=provider.name)

        self.logger.warning(f"All TTS providers failed for {asset_id}; using silent narration")
        return self.silent_asset(asset_id, estimate_spoken_duration(text), audio_dir)

    def silent_asset(self, asset_id: str, seconds: float, audio_dir: Path) -> AudioAsset:
        """
        Write a silent WAV track.

        Args:
            asset_id: Scene id, or "intro"/"outro" for cards
            seconds: Track length
            audio_dir: Directory the audio file is written to

        Returns:
            Persisted audio asset with provider "silence"
        """
        path = audio_dir / f"{asset_id}_silent.wav"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            silence = AudioSegment.silent(duration=int(seconds * 1000), frame_rate=self.settings.audio_sample_rate)
            silence.export(str(path), format="wav")
            data = path.read_bytes()
        except OSError as e:
            raise LocalAssetError(f"Could not write silent audio for {asset_id}: {e}") from e

        self.logger.debug(f"Silent track for {asset_id}: {seconds}s")
        return AudioAsset(asset_id=asset_id, path=path, data=data, provider="silence", duration_seconds=seconds)
