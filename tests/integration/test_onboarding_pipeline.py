"""End-to-end tests for the onboarding pipeline with a fake encoder."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from onboardai.core.exceptions import LocalAssetError, PipelineError
from onboardai.models.schemas import (
    OnboardingScript,
    PipelineStage,
    RepositoryContext,
    RepositoryIdentity,
    VisualType,
)
from onboardai.pipelines.onboarding_pipeline import OnboardingPipeline, estimate_video_duration, plan_assets
from onboardai.services.frame_renderer import FrameRenderer
from onboardai.services.llm_client import LLMClient
from onboardai.services.narration_engine import NarrationEngine


def _manifest_names(manifest: str) -> list[str]:
    return [Path(line[len("file '") : -1]).name for line in manifest.splitlines()]


@pytest.fixture
def build_pipeline(settings, logger, make_tts, fake_runner):
    def factory(runner=None, **overrides):
        components = {
            "llm_client": LLMClient(settings, logger),
            "ingestor": MagicMock(),
            "synthesizer": MagicMock(),
            "narration_engine": NarrationEngine(settings, logger, providers=[make_tts()]),
            "frame_renderer": FrameRenderer(settings, logger),
            "runner": runner or fake_runner,
        }
        components.update(overrides)
        return OnboardingPipeline(settings, logger, **components)

    return factory


def _work_dirs(settings) -> list[Path]:
    root = Path(settings.work_root)
    return list(root.iterdir()) if root.exists() else []


def test_render_produces_intro_scenes_outro(build_pipeline, fake_runner, sample_script, settings):
    pipeline = build_pipeline()

    video = pipeline.render_video(sample_script)

    assert _manifest_names(fake_runner.manifests[0]) == [
        "segment_000_intro.mp4",
        "segment_001_scene.mp4",
        "segment_002_scene.mp4",
        "segment_003_scene.mp4",
        "segment_004_outro.mp4",
    ]
    assert fake_runner.purposes() == [
        "encode segment segment_000_intro.mp4",
        "encode segment segment_001_scene.mp4",
        "encode segment segment_002_scene.mp4",
        "encode segment segment_003_scene.mp4",
        "encode segment segment_004_outro.mp4",
        "concatenate segments",
        "optimize for delivery",
        "probe final.mp4",
    ]
    assert video.size_bytes == 600_000
    assert video.content_type == "video/mp4"
    assert video.metadata.segment_count == 5
    assert video.metadata.total_scenes == 5
    assert video.metadata.scene_count == 3
    assert video.metadata.estimated_duration_seconds == 23
    assert video.metadata.duration_seconds == 42.5
    assert pipeline.stage == PipelineStage.DONE
    assert _work_dirs(settings) == []


def test_card_segments_are_fixed_length(build_pipeline, fake_runner, sample_script):
    build_pipeline().render_video(sample_script)

    intro, scene, outro = fake_runner.commands[0], fake_runner.commands[1], fake_runner.commands[4]
    assert intro.args[intro.args.index("-t") + 1] == "4"
    assert outro.args[outro.args.index("-t") + 1] == "3"
    assert "-t" not in scene.args
    assert any(arg.endswith("intro_silent.wav") for arg in intro.args)
    assert any(arg.endswith("scene_01.mp3") for arg in scene.args)


def test_failed_frame_skips_only_that_scene(build_pipeline, fake_runner, sample_script, monkeypatch):
    pipeline = build_pipeline()
    render_scene = pipeline.frame_renderer.render_scene

    def flaky_render_scene(scene, frames_dir, asset_id=None):
        if scene.id == "scene-2":
            raise LocalAssetError("Could not render frame for scene-2")
        return render_scene(scene, frames_dir, asset_id=asset_id)

    monkeypatch.setattr(pipeline.frame_renderer, "render_scene", flaky_render_scene)

    video = pipeline.render_video(sample_script)

    assert video.metadata.segment_count == 4
    assert video.metadata.total_scenes == 5
    assert _manifest_names(fake_runner.manifests[0]) == [
        "segment_000_intro.mp4",
        "segment_001_scene.mp4",
        "segment_003_scene.mp4",
        "segment_004_outro.mp4",
    ]


def test_failed_encode_skips_only_that_scene(build_pipeline, make_runner, sample_script):
    runner = make_runner(fail_on=("encode segment segment_003_scene.mp4",))

    video = build_pipeline(runner=runner).render_video(sample_script)

    assert video.metadata.segment_count == 4
    assert "segment_003_scene.mp4" not in runner.manifests[0]


def test_all_tts_failures_still_render(build_pipeline, make_tts, settings, logger, fake_runner, sample_script):
    narration = NarrationEngine(settings, logger, providers=[make_tts(fail=True)])

    video = build_pipeline(narration_engine=narration).render_video(sample_script)

    assert video.metadata.segment_count == 5
    scene_command = fake_runner.commands[1]
    assert any(arg.endswith("scene_01_silent.wav") for arg in scene_command.args)


def test_script_without_scenes_renders_cards_only(build_pipeline, fake_runner):
    script = OnboardingScript(project_name="Empty", one_liner="Nothing to see", scenes=[])

    video = build_pipeline().render_video(script)

    assert video.metadata.segment_count == 2
    assert video.metadata.total_scenes == 2
    assert _manifest_names(fake_runner.manifests[0]) == [
        "segment_000_intro.mp4",
        "segment_001_outro.mp4",
    ]


def test_no_segments_is_terminal(build_pipeline, make_runner, sample_script, settings):
    runner = make_runner(fail_on=("encode segment",))
    pipeline = build_pipeline(runner=runner)

    with pytest.raises(PipelineError) as exc_info:
        pipeline.render_video(sample_script)

    error = exc_info.value
    assert error.reason == "no_segments_produced"
    assert error.stage == "assembling"
    assert error.details["stage"] == "assembling"
    assert pipeline.stage == PipelineStage.ERRORED
    assert "concatenate segments" not in runner.purposes()
    assert _work_dirs(settings) == []


def test_concatenation_failure_is_terminal(build_pipeline, make_runner, sample_script, settings):
    runner = make_runner(fail_on=("concatenate",))

    with pytest.raises(PipelineError) as exc_info:
        build_pipeline(runner=runner).render_video(sample_script)

    assert exc_info.value.reason == "concatenation_failed"
    assert exc_info.value.stage == "assembling"
    assert _work_dirs(settings) == []


def test_optimization_failure_falls_back(build_pipeline, make_runner, sample_script):
    runner = make_runner(fail_on=("optimize",))

    video = build_pipeline(runner=runner).render_video(sample_script)

    assert video.size_bytes == 600_000
    assert runner.purposes()[-1] == "probe combined.mp4"


def test_keep_work_dir(build_pipeline, sample_script, settings):
    settings.keep_work_dir = True

    build_pipeline().render_video(sample_script)

    (work_dir,) = _work_dirs(settings)
    assert sorted(p.name for p in (work_dir / "segments").iterdir()) == [
        "segment_000_intro.mp4",
        "segment_001_scene.mp4",
        "segment_002_scene.mp4",
        "segment_003_scene.mp4",
        "segment_004_outro.mp4",
    ]
    assert not (work_dir / "concat.txt").exists()


def test_generate_script(build_pipeline, sample_script, settings):
    context = RepositoryContext(
        repo=RepositoryIdentity(owner="acme", repo="api", branch="main", default_branch="main"),
        picked=["README.md"],
    )
    ingestor = MagicMock()
    ingestor.ingest.return_value = context
    synthesizer = MagicMock()
    synthesizer.synthesize.return_value = sample_script
    pipeline = build_pipeline(ingestor=ingestor, synthesizer=synthesizer)

    result = pipeline.generate_script("acme/api")

    assert result.script == sample_script
    assert result.model == settings.gemini_model
    assert result.repo.owner == "acme"
    assert result.picked == ["README.md"]
    synthesizer.synthesize.assert_called_once_with(context, model=settings.gemini_model)
    assert pipeline.stage == PipelineStage.DONE


def test_missing_credentials_fail_before_ingest(build_pipeline, settings):
    settings.gemini_api_key = None
    ingestor = MagicMock()
    pipeline = build_pipeline(ingestor=ingestor)

    with pytest.raises(PipelineError) as exc_info:
        pipeline.generate_script("acme/api")

    assert exc_info.value.reason == "missing_credential"
    assert exc_info.value.stage == "scripting"
    ingestor.ingest.assert_not_called()


def test_plan_assets(sample_script):
    plan = plan_assets(sample_script)

    assert [entry.scene_id for entry in plan.assets] == ["scene-1", "scene-2", "scene-3"]
    assert plan.assets[0].visual_type == VisualType.TITLE
    assert plan.assets[1].highlights == []
    assert plan.assets[0].duration == 6
    assert plan.estimated_duration == 15 + 20 + 20


def test_estimate_video_duration(sample_script, settings):
    assert estimate_video_duration(sample_script, settings) == 6 + 5 + 5 + 4 + 3
