"""FFmpeg command descriptors used by the segment builder and timeline assembler.

Every segment is encoded with the same frame size, frame rate, pixel format,
sample rate and channel layout so the concat demuxer sees uniform streams.
"""

from pathlib import Path
from typing import Optional

from onboardai.core.config import Settings
from onboardai.utils.command_runner import ToolCommand


def _video_filter(settings: Settings) -> str:
    w, h = settings.video_width, settings.video_height
    return (
        f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
        f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2:black,format=yuv420p"
    )


def _uniform_stream_args(settings: Settings) -> list[str]:
    return [
        "-vf", _video_filter(settings),
        "-r", str(settings.video_fps),
        "-c:v", "libx264",
        "-preset", "veryfast",
        "-tune", "stillimage",
        "-pix_fmt", "yuv420p",
        "-c:a", "aac",
        "-ar", str(settings.audio_sample_rate),
        "-ac", "2",
    ]


def segment_command(
    settings: Settings,
    frame_path: Path,
    audio_path: Path,
    output_path: Path,
    duration_seconds: Optional[float] = None,
) -> ToolCommand:
    """
    Loop a still frame over an audio track.

    -shortest ends the segment with the audio; cards also pass an explicit
    duration.
    """
    args = ["-y", "-loop", "1", "-i", str(frame_path), "-i", str(audio_path)]
    args += _uniform_stream_args(settings)
    if duration_seconds is not None:
        args += ["-t", f"{duration_seconds:g}"]
    args += ["-shortest", str(output_path)]
    return ToolCommand(program=settings.ffmpeg_binary, args=tuple(args), purpose=f"encode segment {output_path.name}")


def concat_command(settings: Settings, manifest_path: Path, output_path: Path) -> ToolCommand:
    """Concatenate the manifest's segments, re-encoding both streams (stream copy drops audio)."""
    args = [
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(manifest_path),
        "-c:v", "libx264",
        "-preset", "fast",
        "-pix_fmt", "yuv420p",
        "-c:a", "aac",
        "-b:a", "192k",
        str(output_path),
    ]
    return ToolCommand(program=settings.ffmpeg_binary, args=tuple(args), purpose="concatenate segments")


def optimize_command(settings: Settings, input_path: Path, output_path: Path) -> ToolCommand:
    """Re-encode for web delivery."""
    args = [
        "-y",
        "-i", str(input_path),
        "-c:v", "libx264",
        "-preset", "medium",
        "-crf", "23",
        "-c:a", "aac",
        "-b:a", "128k",
        "-pix_fmt", "yuv420p",
        "-movflags", "+faststart",
        str(output_path),
    ]
    return ToolCommand(program=settings.ffmpeg_binary, args=tuple(args), purpose="optimize for delivery")


def probe_duration_command(settings: Settings, media_path: Path) -> ToolCommand:
    """Read a media file's duration in seconds."""
    args = [
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(media_path),
    ]
    return ToolCommand(program=settings.ffprobe_binary, args=tuple(args), purpose=f"probe {media_path.name}")
