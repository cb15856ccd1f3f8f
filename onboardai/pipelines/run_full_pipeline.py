"""Full pipeline CLI - GitHub repository → onboarding script → narrated MP4."""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Optional

from onboardai.core.config import Settings, settings
from onboardai.core.exceptions import OnboardAIError
from onboardai.core.logging_config import get_logger, setup_logging
from onboardai.models.schemas import OnboardingScript, RenderedVideo
from onboardai.pipelines.onboarding_pipeline import OnboardingPipeline
from onboardai.utils.io_utils import slugify


def load_script(path: Path) -> OnboardingScript:
    """Load a previously saved script (camelCase JSON)."""
    with open(path, encoding="utf-8") as f:
        return OnboardingScript.model_validate(json.load(f))


def save_outputs(
    script: OnboardingScript, video: Optional[RenderedVideo], output_path: Path, logger: Any
) -> tuple[Path, Optional[Path]]:
    """
    Write the script JSON (and the video, if any) next to each other.

    Returns:
        (script_path, video_path)
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    script_path = output_path.with_suffix(".json")
    with open(script_path, "w", encoding="utf-8") as f:
        json.dump(script.model_dump(by_alias=True, mode="json"), f, indent=2, ensure_ascii=False)
    logger.info(f"Script saved: {script_path}")

    video_path = None
    if video is not None:
        video_path = output_path.with_suffix(".mp4")
        video_path.write_bytes(video.data)
        logger.info(f"Video saved: {video_path} ({video.size_mb} MB)")
    return script_path, video_path


def run(args: argparse.Namespace, settings: Settings, logger: Any) -> int:
    """Run the pipeline for parsed CLI arguments."""
    pipeline = OnboardingPipeline(settings, logger)
    start_time = time.time()

    if args.script_file:
        logger.info(f"Loading script from {args.script_file}")
        script = load_script(Path(args.script_file))
    else:
        logger.info("=" * 60)
        logger.info("PHASE 1: Script Synthesis")
        logger.info("=" * 60)
        result = pipeline.generate_script(args.repo, model=args.model)
        script = result.script
        logger.info(f"Model: {result.model} | branch: {result.repo.branch} | picked files: {len(result.picked)}")

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = Path(settings.output_dir) / f"{slugify(script.project_name) or 'onboarding'}_{int(start_time)}"

    video = None
    if args.script_only:
        logger.info("SCRIPT-ONLY MODE - skipping video rendering")
    else:
        logger.info("=" * 60)
        logger.info("PHASE 2: Video Rendering")
        logger.info("=" * 60)
        video = pipeline.render_video(script)

    script_path, video_path = save_outputs(script, video, output_path, logger)

    elapsed = time.time() - start_time
    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETE!")
    logger.info("=" * 60)
    logger.info(f"Project: {script.project_name} ({len(script.scenes)} scenes)")
    logger.info(f"Script: {script_path.absolute()}")
    if video_path:
        logger.info(f"Video: {video_path.absolute()}")
        logger.info(
            f"Segments: {video.metadata.segment_count}/{video.metadata.total_scenes}, "
            f"estimated duration {video.metadata.estimated_duration_seconds}s"
        )
    logger.info(f"Elapsed: {elapsed:.2f}s")
    logger.info("=" * 60)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="OnboardAI - generate a narrated onboarding video for a GitHub repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--repo",
        type=str,
        default=None,
        help="Repository locator: owner/repo or https://github.com/owner/repo[/tree/<ref>]",
    )
    parser.add_argument(
        "--script-file",
        type=str,
        default=None,
        help="Render a previously saved script JSON instead of synthesizing one",
    )
    parser.add_argument(
        "--script-only",
        action="store_true",
        help="Synthesize and save the script without rendering a video",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="LLM model override (default: GEMINI_MODEL / OPENAI_MODEL)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output path without extension; .mp4 and .json are written (default: OUTPUT_DIR/<project>_<ts>)",
    )
    parser.add_argument(
        "--keep-work-dir",
        action="store_true",
        help="Keep the per-run working directory for debugging",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entrypoint for the full pipeline."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.repo and not args.script_file:
        parser.error("Either --repo or --script-file must be provided")
    if args.script_file and args.script_only:
        parser.error("--script-only needs --repo; a loaded script has nothing left to synthesize")

    if args.keep_work_dir:
        settings.keep_work_dir = True

    # Setup logging
    setup_logging(log_level=args.log_level or settings.log_level, log_file=settings.log_file)
    logger = get_logger(__name__, repo=args.repo or args.script_file)

    logger.info("=" * 60)
    logger.info("OnboardAI - Full Pipeline")
    logger.info(f"Source: {args.repo or args.script_file}")
    logger.info(f"LLM provider: {settings.llm_provider}")
    logger.info("=" * 60)

    try:
        return run(args, settings, logger)
    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        return 1
    except OnboardAIError as e:
        stage = e.details.get("stage", "unknown")
        logger.error(f"Pipeline failed at {stage}: [{e.reason}] {e.message}")
        if e.retryable:
            logger.error("This error is transient; try again in a few moments.")
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
