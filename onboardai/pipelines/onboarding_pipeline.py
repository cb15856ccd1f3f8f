"""Onboarding pipeline orchestrator - repository → script → narrated video."""

from pathlib import Path
from typing import Any, Optional

from onboardai.core.config import Settings
from onboardai.core.exceptions import LocalAssetError, OnboardAIError, PipelineError
from onboardai.models.schemas import (
    AssetPlan,
    AssetPlanEntry,
    OnboardingScript,
    PipelineStage,
    RenderedVideo,
    RenderMetadata,
    ScriptResult,
    Segment,
    SegmentKind,
)
from onboardai.services.frame_renderer import FrameRenderer
from onboardai.services.llm_client import LLMClient
from onboardai.services.narration_engine import NarrationEngine
from onboardai.services.repo_ingestor import RepositoryIngestor
from onboardai.services.script_synthesizer import ScriptSynthesizer
from onboardai.services.segment_builder import SegmentBuilder
from onboardai.services.timeline_assembler import TimelineAssembler
from onboardai.utils.command_runner import CommandRunner
from onboardai.utils.error_handler import format_error_message, get_fallback_suggestion
from onboardai.utils.io_utils import create_run_work_dir, remove_work_dir
from onboardai.utils.text_utils import estimate_spoken_duration

PLAN_DEFAULT_SCENE_SECONDS = 20


def estimate_video_duration(script: OnboardingScript, settings: Settings) -> int:
    """Estimated spoken length of all scenes plus the intro and outro cards."""
    spoken = sum(estimate_spoken_duration(scene.narration) for scene in script.scenes)
    return spoken + settings.intro_duration_seconds + settings.outro_duration_seconds


def plan_assets(script: OnboardingScript) -> AssetPlan:
    """
    Describe the assets each scene needs without generating any media.

    The plan's estimated duration trusts the script's advisory scene
    durations, defaulting to 20 seconds per scene.
    """
    entries = [
        AssetPlanEntry(
            scene_id=scene.id,
            visual_type=scene.visual.type,
            title=scene.title,
            narration=scene.narration,
            description=scene.visual.description,
            highlights=scene.visual.highlights,
            duration=estimate_spoken_duration(scene.narration),
        )
        for scene in script.scenes
    ]
    estimated = sum(int(scene.duration_sec or PLAN_DEFAULT_SCENE_SECONDS) for scene in script.scenes)
    return AssetPlan(assets=entries, estimated_duration=estimated)


class OnboardingPipeline:
    """Runs one onboarding job through scripting, per-scene rendering and assembly."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        llm_client: Optional[LLMClient] = None,
        ingestor: Optional[RepositoryIngestor] = None,
        synthesizer: Optional[ScriptSynthesizer] = None,
        narration_engine: Optional[NarrationEngine] = None,
        frame_renderer: Optional[FrameRenderer] = None,
        runner: Optional[CommandRunner] = None,
        segment_builder: Optional[SegmentBuilder] = None,
        assembler: Optional[TimelineAssembler] = None,
    ):
        """
        Initialize the pipeline; any collaborator can be injected (tests pass fakes).

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.llm_client = llm_client or LLMClient(settings, logger)
        self.ingestor = ingestor or RepositoryIngestor(settings, logger)
        self.synthesizer = synthesizer or ScriptSynthesizer(settings, logger, llm_client=self.llm_client)
        self.narration_engine = narration_engine or NarrationEngine(settings, logger)
        self.frame_renderer = frame_renderer or FrameRenderer(settings, logger)
        runner = runner or CommandRunner(settings, logger)
        self.segment_builder = segment_builder or SegmentBuilder(settings, logger, runner=runner)
        self.assembler = assembler or TimelineAssembler(settings, logger, runner=runner)
        self.stage = PipelineStage.IDLE

    def _enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.logger.debug(f"Pipeline stage: {stage.value}")

    def _fail(self, error: Exception) -> PipelineError:
        stage = self.stage
        self.stage = PipelineStage.ERRORED
        if isinstance(error, PipelineError):
            return error
        self.logger.error(f"Pipeline failed during {stage.value}: {error}")
        return PipelineError(stage.value, error)

    # ------------------------------------------------------------------
    # Scripting
    # ------------------------------------------------------------------

    def generate_script(self, locator: str, model: Optional[str] = None) -> ScriptResult:
        """
        Ingest a repository and synthesize its onboarding script.

        Credentials are checked before any network call.

        Raises:
            PipelineError: Wrapping the terminal cause with stage "scripting"
        """
        self._enter(PipelineStage.SCRIPTING)
        try:
            self.llm_client.ensure_configured()
            context = self.ingestor.ingest(locator)
            model_name = model or self.llm_client.default_model
            script = self.synthesizer.synthesize(context, model=model_name)
        except Exception as e:
            raise self._fail(e) from e

        self._enter(PipelineStage.DONE)
        return ScriptResult(script=script, model=model_name, repo=context.repo, picked=context.picked)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_video(self, script: OnboardingScript) -> RenderedVideo:
        """
        Render the script into one MP4.

        Produces up to N+2 segments (intro, one per scene, outro). A failing
        scene is logged and skipped; only an empty timeline or a failed
        concatenation ends the run. The working directory is removed
        afterwards unless keep_work_dir is set.

        Raises:
            PipelineError: Wrapping NoSegmentsError, AssemblyError or an unexpected failure
        """
        work_dir = create_run_work_dir(self.settings.work_root)
        logger = self.logger.bind(run_id=work_dir.name)
        logger.info(f"Rendering '{script.project_name}' ({len(script.scenes)} scenes) in {work_dir}")

        try:
            self._enter(PipelineStage.PER_SCENE)
            segments = self._render_segments(script, work_dir, logger)

            self._enter(PipelineStage.ASSEMBLING)
            timeline = self.assembler.concatenate(segments, work_dir)

            self._enter(PipelineStage.OPTIMIZING)
            timeline = self.assembler.optimize(timeline, work_dir)
            duration = self.assembler.probe_duration(timeline.output_path)

            data = Path(timeline.output_path).read_bytes()
        except Exception as e:
            raise self._fail(e) from e
        finally:
            if self.settings.keep_work_dir:
                logger.info(f"Keeping working directory {work_dir}")
            else:
                failures = remove_work_dir(work_dir, logger)
                if failures:
                    logger.warning(f"{failures} paths could not be removed from {work_dir}")

        self._enter(PipelineStage.DONE)
        metadata = RenderMetadata(
            project_name=script.project_name,
            scene_count=len(script.scenes),
            total_scenes=len(script.scenes) + 2,
            segment_count=len(segments),
            estimated_duration_seconds=estimate_video_duration(script, self.settings),
            duration_seconds=duration,
        )
        video = RenderedVideo(data=data, size_bytes=len(data), metadata=metadata)
        logger.info(f"Video ready: {video.size_mb} MB, {len(segments)} segments")
        return video

    def _render_segments(self, script: OnboardingScript, work_dir: Path, logger: Any) -> list[Segment]:
        segments: list[Segment] = []

        intro = self._render_card(SegmentKind.INTRO, 0, script, work_dir, logger)
        if intro is not None:
            segments.append(intro)

        for index, scene in enumerate(script.scenes):
            ordinal = index + 1
            logger.info(f"Scene {ordinal}/{len(script.scenes)}: {scene.title}")
            try:
                asset_id = f"scene_{ordinal:02d}"
                audio = self.narration_engine.synthesize(asset_id, scene.narration, work_dir / "audio")
                frame = self.frame_renderer.render_scene(scene, work_dir / "frames", asset_id=asset_id)
                segment = self.segment_builder.build(
                    ordinal, SegmentKind.SCENE, frame, audio, work_dir / "segments", scene_id=scene.id
                )
            except LocalAssetError as e:
                logger.warning(
                    format_error_message(
                        "Scene rendering",
                        e,
                        context={"scene_id": scene.id, "ordinal": ordinal},
                        suggestion=get_fallback_suggestion("Segment Encoding", e),
                    )
                )
                continue
            segments.append(segment)

        outro = self._render_card(SegmentKind.OUTRO, len(script.scenes) + 1, script, work_dir, logger)
        if outro is not None:
            segments.append(outro)

        logger.info(f"Rendered {len(segments)}/{len(script.scenes) + 2} segments")
        return segments

    def _render_card(
        self, kind: SegmentKind, ordinal: int, script: OnboardingScript, work_dir: Path, logger: Any
    ) -> Optional[Segment]:
        """Intro/outro card with a silent track of fixed length; None if it could not be built."""
        if kind == SegmentKind.INTRO:
            seconds = self.settings.intro_duration_seconds
        else:
            seconds = self.settings.outro_duration_seconds

        try:
            if kind == SegmentKind.INTRO:
                frame = self.frame_renderer.render_intro(script, work_dir / "frames")
            else:
                frame = self.frame_renderer.render_outro(work_dir / "frames")
            audio = self.narration_engine.silent_asset(kind.value, seconds, work_dir / "audio")
            return self.segment_builder.build(
                ordinal, kind, frame, audio, work_dir / "segments", duration_seconds=seconds
            )
        except OnboardAIError as e:
            logger.warning(f"Skipping {kind.value} card: {e.message}")
            return None

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_assets(self, script: OnboardingScript) -> AssetPlan:
        """Asset plan for a script (no media generated)."""
        plan = plan_assets(script)
        self.logger.info(f"Planned {len(plan.assets)} scene assets (~{plan.estimated_duration}s)")
        return plan
