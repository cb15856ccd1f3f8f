"""Timeline Assembler - concatenates segments and optimizes the result for delivery."""

from pathlib import Path
from typing import Any, Optional

from onboardai.core.config import Settings
from onboardai.core.exceptions import AssemblyError, ExternalToolError, NoSegmentsError
from onboardai.models.schemas import Segment, Timeline
from onboardai.services.ffmpeg_commands import concat_command, optimize_command, probe_duration_command
from onboardai.utils.command_runner import CommandRunner

MANIFEST_NAME = "concat.txt"


def quote_concat_path(path: Path) -> str:
    """Quote a path for the ffmpeg concat demuxer (single quotes, ' escaped as '\\'')."""
    return "'" + str(path).replace("'", "'\\''") + "'"


def build_manifest(segments: list[Segment]) -> str:
    """One `file '<path>'` line per segment, in the given order."""
    return "".join(f"file {quote_concat_path(segment.path.resolve())}\n" for segment in segments)


class TimelineAssembler:
    """Joins ordered segments into one MP4."""

    def __init__(self, settings: Settings, logger: Any, runner: Optional[CommandRunner] = None):
        """
        Initialize the timeline assembler.

        Args:
            settings: Application settings
            logger: Logger instance
            runner: Command runner (defaults to a subprocess-backed runner)
        """
        self.settings = settings
        self.logger = logger
        self.runner = runner or CommandRunner(settings, logger)

    def concatenate(self, segments: list[Segment], work_dir: Path) -> Timeline:
        """
        Concatenate segments in order through a concat manifest.

        Both streams are re-encoded; stream copy drops the audio of
        heterogeneous inputs. The manifest is always removed afterwards.

        Args:
            segments: Segments in timeline order
            work_dir: Run working directory

        Returns:
            Timeline pointing at the raw concatenation

        Raises:
            NoSegmentsError: If there is nothing to concatenate
            AssemblyError: If the encoder fails or writes nothing
        """
        if not segments:
            raise NoSegmentsError("No video segments were generated")

        manifest_path = work_dir / MANIFEST_NAME
        output_path = work_dir / "combined.mp4"
        self.logger.info(f"Concatenating {len(segments)} segments")

        try:
            try:
                manifest_path.write_text(build_manifest(segments), encoding="utf-8")
            except OSError as e:
                raise AssemblyError(f"Could not write concat manifest: {e}") from e

            try:
                self.runner.run(concat_command(self.settings, manifest_path, output_path))
            except ExternalToolError as e:
                raise AssemblyError(f"Video concatenation failed: {e.message}", details=e.details) from e

            if not output_path.exists():
                raise AssemblyError("Video concatenation produced no output file")
        finally:
            try:
                manifest_path.unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning(f"Could not remove concat manifest {manifest_path}: {e}")

        size = output_path.stat().st_size
        if size < self.settings.min_output_bytes:
            self.logger.warning(
                f"Concatenated video is only {size} bytes (< {self.settings.min_output_bytes}); audio may be missing"
            )

        return Timeline(segments=list(segments), output_path=output_path, size_bytes=size)

    def optimize(self, timeline: Timeline, work_dir: Path) -> Timeline:
        """
        Re-encode for web delivery (crf 23, aac 128k, faststart).

        Falls back to the raw concatenation when optimizing fails.
        """
        if timeline.output_path is None:
            raise AssemblyError("Nothing to optimize: timeline has no output")

        optimized_path = work_dir / "final.mp4"
        try:
            self.runner.run(optimize_command(self.settings, timeline.output_path, optimized_path))
        except ExternalToolError as e:
            self.logger.warning(f"Optimization failed, using unoptimized video: {e.message}")
            return timeline

        if not optimized_path.exists() or optimized_path.stat().st_size == 0:
            self.logger.warning("Optimization produced no output, using unoptimized video")
            return timeline

        size = optimized_path.stat().st_size
        self.logger.info(f"Optimized video: {size / 1024 / 1024:.2f} MB")
        return timeline.model_copy(update={"output_path": optimized_path, "size_bytes": size, "optimized": True})

    def probe_duration(self, media_path: Path) -> Optional[float]:
        """Duration in seconds via ffprobe; None when probing is not possible."""
        try:
            result = self.runner.run(probe_duration_command(self.settings, media_path))
        except ExternalToolError as e:
            self.logger.debug(f"Duration probe skipped: {e.message}")
            return None

        try:
            return round(float(result.stdout.strip()), 2)
        except ValueError:
            return None
