"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    See .env.example for a template.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="OnboardAI", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional log file path (rotated and zipped)")

    # ========================================================================
    # LLM Settings
    # ========================================================================
    llm_provider: str = Field(
        default="gemini",
        description="LLM provider used for script synthesis: 'gemini' or 'openai'",
    )
    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API key")
    gemini_model: str = Field(default="models/gemini-2.5-flash", description="Gemini model name")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model name")
    llm_temperature: float = Field(
        default=0.4, description="Sampling temperature for script synthesis (low for determinism)"
    )
    llm_max_attempts: int = Field(
        default=3, description="Total attempts for an LLM call when the provider is overloaded or rate limited"
    )
    llm_backoff_base_seconds: float = Field(
        default=2.0, description="Base delay for exponential backoff between LLM attempts (2s, 4s, 8s...)"
    )

    # ========================================================================
    # Repository Ingestion Settings
    # ========================================================================
    github_token: Optional[str] = Field(
        default=None, description="GitHub token (optional for public repos, raises API rate limits)"
    )
    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")
    max_readme_chars: int = Field(default=14000, description="README characters sent to the LLM")
    max_file_chars: int = Field(default=12000, description="Characters per source file sent to the LLM")
    max_tree_paths: int = Field(default=200, description="Number of tree paths included in the folder listing")
    max_picked_files: int = Field(default=40, description="Maximum number of files fetched for context")
    http_timeout_seconds: float = Field(default=30.0, description="Timeout for repository API requests")

    # ========================================================================
    # TTS (Text-to-Speech) Settings
    # ========================================================================
    elevenlabs_api_key: Optional[str] = Field(default=None, description="ElevenLabs API key (premium provider)")
    elevenlabs_voice_id: str = Field(default="21m00Tcm4TlvDq8ikWAM", description="ElevenLabs voice ID")
    elevenlabs_model: str = Field(default="eleven_monolingual_v1", description="ElevenLabs model ID")
    google_tts_max_chars: int = Field(
        default=200, description="Google Translate TTS only accepts short inputs; longer text is truncated"
    )
    tts_timeout_seconds: float = Field(default=30.0, description="Timeout for each TTS provider request")

    # ========================================================================
    # Video Rendering Settings
    # ========================================================================
    video_width: int = Field(default=1280, description="Video output width in pixels")
    video_height: int = Field(default=720, description="Video output height in pixels")
    video_fps: int = Field(default=25, description="Frame rate of every rendered segment")
    audio_sample_rate: int = Field(default=44100, description="Audio sample rate of every rendered segment")
    frame_max_highlights: int = Field(default=4, description="Maximum highlight bullets drawn on a scene frame")
    intro_duration_seconds: int = Field(default=4, description="Intro card duration in seconds")
    outro_duration_seconds: int = Field(default=3, description="Outro card duration in seconds")
    outro_message: str = Field(default="Thank you for watching!", description="Text shown on the outro card")
    min_output_bytes: int = Field(
        default=500000,
        description="Concatenated videos smaller than this are logged as possibly missing audio (advisory only)",
    )
    ffmpeg_binary: str = Field(default="ffmpeg", description="ffmpeg executable")
    ffprobe_binary: str = Field(default="ffprobe", description="ffprobe executable")
    ffmpeg_timeout_seconds: float = Field(default=300.0, description="Ceiling for a single encoder invocation")

    # ========================================================================
    # Working Directory & Output Settings
    # ========================================================================
    work_root: str = Field(default="tmp", description="Parent directory of per-run working directories")
    keep_work_dir: bool = Field(
        default=False, description="Keep the per-run working directory after the run (debugging)"
    )
    output_dir: str = Field(default="outputs/videos", description="Output directory for CLI renders")


# Global settings instance
settings = Settings()
