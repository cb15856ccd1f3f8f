"""Shared pytest fixtures and configuration."""

from pathlib import Path

import pytest

from onboardai.core.config import Settings
from onboardai.core.exceptions import ExternalToolError
from onboardai.core.logging_config import get_logger
from onboardai.models.schemas import OnboardingScript
from onboardai.services.tts_client import TTSProvider, TTSProviderError
from onboardai.utils.command_runner import CommandResult, ToolCommand


class FakeRunner:
    """
    Stands in for CommandRunner: records commands and writes the output file
    ffmpeg would have produced (the last argument).
    """

    def __init__(self, output_bytes: int = 600_000, fail_on: tuple[str, ...] = (), probe_output: str = "42.5"):
        self.output_bytes = output_bytes
        self.fail_on = fail_on
        self.probe_output = probe_output
        self.commands: list[ToolCommand] = []
        self.manifests: list[str] = []

    def run(self, command: ToolCommand) -> CommandResult:
        self.commands.append(command)
        if any(marker in command.purpose for marker in self.fail_on):
            raise ExternalToolError(f"{command.purpose} failed", program=command.program, returncode=1)

        if command.purpose.startswith("probe"):
            return CommandResult(returncode=0, stdout=self.probe_output)

        if command.purpose == "concatenate segments":
            manifest = Path(command.args[command.args.index("-i") + 1])
            self.manifests.append(manifest.read_text(encoding="utf-8"))

        output = Path(command.args[-1])
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(b"\x00" * self.output_bytes)
        return CommandResult(returncode=0)

    def purposes(self) -> list[str]:
        return [c.purpose for c in self.commands]


class StaticTTS(TTSProvider):
    """TTS provider returning fixed bytes, or failing every call."""

    def __init__(self, settings, logger, name: str = "static", audio: bytes = b"ID3" + b"\x01" * 500, fail: bool = False):
        super().__init__(settings, logger)
        self.name = name
        self.audio = audio
        self.fail = fail
        self.calls: list[str] = []

    def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        if self.fail:
            raise TTSProviderError(f"{self.name} unavailable")
        return self.audio


@pytest.fixture
def settings(tmp_path):
    """Create test settings instance (no real credentials, work dirs under tmp_path)."""
    return Settings(
        gemini_api_key="test-gemini-key",
        openai_api_key=None,
        elevenlabs_api_key=None,
        github_token=None,
        llm_provider="gemini",
        work_root=str(tmp_path / "work"),
        output_dir=str(tmp_path / "outputs"),
        keep_work_dir=False,
    )


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def sample_script_dict():
    """A valid script as the LLM would return it (camelCase)."""
    return {
        "projectName": "Acme API",
        "oneLiner": "A FastAPI service that manages widgets for the Acme platform",
        "techStack": ["Python", "FastAPI", "PostgreSQL"],
        "architecture": {
            "overview": "Routes call services, services call repositories.",
            "keyModules": [{"name": "api", "responsibility": "HTTP routes", "files": ["app/api/routes.py"]}],
            "dataFlow": "Request -> route -> service -> repository",
        },
        "setup": {
            "prerequisites": ["Python 3.11"],
            "steps": ["pip install -e ."],
            "runCommands": ["uvicorn app.main:app"],
        },
        "contributorStartPoints": [
            {"title": "Add a route", "description": "Start in app/api", "suggestedFiles": ["app/api/routes.py"]}
        ],
        "scenes": [
            {
                "id": "scene-1",
                "title": "Project Overview",
                "narration": "Acme API manages widgets. It is used by the storefront and the admin tools.",
                "onScreenText": ["Widgets", "Storefront"],
                "visual": {"type": "title", "description": "Logo", "highlights": ["Widgets API", "FastAPI"]},
                "durationSec": 15,
            },
            {
                "id": "scene-2",
                "title": "Architecture",
                "narration": "Requests enter through app/api/routes.py and are handled by services.",
                "onScreenText": ["Routes", "Services", "Repositories"],
                "visual": {"type": "diagram", "description": "Layered diagram", "highlights": []},
            },
            {
                "id": "scene-3",
                "title": "Running Locally",
                "narration": "Install the package and start uvicorn.",
                "visual": {"type": "code_highlight", "description": "Shell", "highlights": ["uvicorn app.main:app"]},
            },
        ],
    }


@pytest.fixture
def sample_script(sample_script_dict):
    return OnboardingScript.model_validate(sample_script_dict)


@pytest.fixture
def make_runner():
    """Factory for FakeRunner with custom failures or output sizes."""
    return FakeRunner


@pytest.fixture
def make_tts(settings, logger):
    """Factory for StaticTTS providers bound to the test settings."""

    def factory(name: str = "static", audio: bytes = b"ID3" + b"\x01" * 500, fail: bool = False) -> StaticTTS:
        return StaticTTS(settings, logger, name=name, audio=audio, fail=fail)

    return factory
