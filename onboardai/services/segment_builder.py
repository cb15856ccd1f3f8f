"""Segment Builder - encodes one frame plus one audio track into a playable segment."""

from pathlib import Path
from typing import Any, Optional

from onboardai.core.config import Settings
from onboardai.core.exceptions import ExternalToolError, LocalAssetError
from onboardai.models.schemas import AudioAsset, FrameAsset, Segment, SegmentKind
from onboardai.services.ffmpeg_commands import segment_command
from onboardai.utils.command_runner import CommandRunner

SMALL_SEGMENT_BYTES = 10_000


class SegmentBuilder:
    """Builds per-scene and title-card segments with ffmpeg."""

    def __init__(self, settings: Settings, logger: Any, runner: Optional[CommandRunner] = None):
        """
        Initialize the segment builder.

        Args:
            settings: Application settings
            logger: Logger instance
            runner: Command runner (defaults to a subprocess-backed runner)
        """
        self.settings = settings
        self.logger = logger
        self.runner = runner or CommandRunner(settings, logger)

    def build(
        self,
        ordinal: int,
        kind: SegmentKind,
        frame: FrameAsset,
        audio: AudioAsset,
        segments_dir: Path,
        duration_seconds: Optional[float] = None,
        scene_id: Optional[str] = None,
    ) -> Segment:
        """
        Encode a segment whose length follows the audio track.

        Cards pass duration_seconds to cap the segment at a fixed length.

        Args:
            ordinal: Timeline position (intro = 0)
            kind: intro, scene or outro
            frame: Still frame
            audio: Narration or silent track
            segments_dir: Directory the segment is written to
            duration_seconds: Optional explicit length
            scene_id: Scene id for scene segments

        Returns:
            The encoded segment

        Raises:
            LocalAssetError: If an input is missing, the encoder fails or the output is empty
        """
        name = scene_id or kind.value
        for label, path in (("frame", frame.path), ("audio", audio.path)):
            if not path.exists():
                raise LocalAssetError(f"Missing {label} for {name}: {path}")

        output_path = segments_dir / f"segment_{ordinal:03d}_{kind.value}.mp4"
        output_path.parent.mkdir(parents=True, exist_ok=True)
        command = segment_command(self.settings, frame.path, audio.path, output_path, duration_seconds)

        try:
            self.runner.run(command)
        except ExternalToolError as e:
            raise LocalAssetError(f"Encoding segment for {name} failed: {e.message}") from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise LocalAssetError(f"Encoder produced no output for {name}")

        size = output_path.stat().st_size
        if size < SMALL_SEGMENT_BYTES:
            self.logger.warning(f"Segment for {name} is only {size} bytes; audio may be missing")
        else:
            self.logger.debug(f"Segment for {name}: {output_path} ({size} bytes)")

        return Segment(ordinal=ordinal, kind=kind, path=output_path, scene_id=scene_id)
