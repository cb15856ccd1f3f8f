"""Frame Renderer - draws the still frames shown under each narration track."""

from io import BytesIO
from pathlib import Path
from typing import Any, Optional

from PIL import Image, ImageDraw, ImageFont

from onboardai.core.config import Settings
from onboardai.core.exceptions import LocalAssetError
from onboardai.models.schemas import FrameAsset, OnboardingScript, Scene

FONT_PATHS = {
    "bold": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",  # Linux
        "/System/Library/Fonts/Helvetica.ttc",  # macOS
        "C:/Windows/Fonts/arialbd.ttf",  # Windows
    ],
    "regular": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/System/Library/Fonts/Helvetica.ttc",
        "C:/Windows/Fonts/arial.ttf",
    ],
}

BACKGROUND_TOP = (0x09, 0x09, 0x0B)
BACKGROUND_BOTTOM = (0x18, 0x18, 0x1B)
TITLE_COLOR = (0x10, 0xB9, 0x81)
BULLET_COLOR = (0xE4, 0xE4, 0xE7)
CAPTION_COLOR = (0x71, 0x71, 0x7A)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)

BULLET_X = 120
BULLET_START_Y = 260
BULLET_LINE_HEIGHT = 50
TITLE_Y = 100

INTRO_NAME_Y = 280
INTRO_ONE_LINER_Y = 420
INTRO_LINE_HEIGHT = 50
INTRO_WRAP_WIDTH = 1000
INTRO_MAX_ONE_LINER_CHARS = 100


def load_font(size: int, weight: str = "regular") -> Any:
    """Load a TrueType font, falling back to Pillow's bundled font."""
    for path in FONT_PATHS.get(weight, FONT_PATHS["regular"]):
        if Path(path).exists():
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)


class FrameRenderer:
    """Renders scene frames and the intro/outro title cards as PNGs."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the frame renderer.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.width = settings.video_width
        self.height = settings.video_height

    def render_scene(self, scene: Scene, frames_dir: Path, asset_id: Optional[str] = None) -> FrameAsset:
        """
        Draw a scene frame: title, up to four highlight bullets and a visual-type caption.

        Highlights come from the scene visual, falling back to its on-screen text.
        The file is named after asset_id (default: the scene id).

        Raises:
            LocalAssetError: If the frame cannot be drawn or written
        """
        try:
            image = self._gradient_background()
            draw = ImageDraw.Draw(image)

            self._draw_centered(draw, scene.title, TITLE_Y, load_font(48, "bold"), TITLE_COLOR)

            highlights = scene.visual.highlights or scene.on_screen_text
            bullet_font = load_font(30)
            y = BULLET_START_Y
            for highlight in highlights[: self.settings.frame_max_highlights]:
                draw.text((BULLET_X, y), f"• {highlight}", font=bullet_font, fill=BULLET_COLOR)
                y += BULLET_LINE_HEIGHT

            caption = scene.visual.type.value.replace("_", " ")
            draw.text((BULLET_X, self.height - 60), caption, font=load_font(18), fill=CAPTION_COLOR)
        except (OSError, ValueError) as e:
            raise LocalAssetError(f"Could not render frame for {scene.id}: {e}") from e

        return self._save(image, asset_id or scene.id, frames_dir)

    def render_intro(self, script: OnboardingScript, frames_dir: Path) -> FrameAsset:
        """Draw the intro card: project name and word-wrapped one-liner on black."""
        try:
            image = Image.new("RGB", (self.width, self.height), BLACK)
            draw = ImageDraw.Draw(image)

            self._draw_centered(draw, script.project_name, INTRO_NAME_Y, load_font(72, "bold"), WHITE)

            one_liner_font = load_font(36)
            one_liner = script.one_liner[:INTRO_MAX_ONE_LINER_CHARS]
            y = INTRO_ONE_LINER_Y
            for line in self._wrap_to_width(draw, one_liner, one_liner_font, INTRO_WRAP_WIDTH):
                self._draw_centered(draw, line, y, one_liner_font, BULLET_COLOR)
                y += INTRO_LINE_HEIGHT
        except (OSError, ValueError) as e:
            raise LocalAssetError(f"Could not render intro card: {e}") from e

        return self._save(image, "intro", frames_dir)

    def render_outro(self, frames_dir: Path) -> FrameAsset:
        """Draw the outro card: centered closing message on black."""
        try:
            image = Image.new("RGB", (self.width, self.height), BLACK)
            draw = ImageDraw.Draw(image)
            font = load_font(60, "bold")
            self._draw_centered(draw, self.settings.outro_message, self.height // 2 - 30, font, WHITE)
        except (OSError, ValueError) as e:
            raise LocalAssetError(f"Could not render outro card: {e}") from e

        return self._save(image, "outro", frames_dir)

    def _gradient_background(self) -> Image.Image:
        image = Image.new("RGB", (self.width, self.height), BACKGROUND_TOP)
        draw = ImageDraw.Draw(image)
        span = max(self.height - 1, 1)
        for y in range(self.height):
            ratio = y / span
            color = tuple(
                round(top + (bottom - top) * ratio) for top, bottom in zip(BACKGROUND_TOP, BACKGROUND_BOTTOM)
            )
            draw.line([(0, y), (self.width, y)], fill=color)
        return image

    def _draw_centered(self, draw: ImageDraw.ImageDraw, text: str, y: int, font: Any, fill: tuple) -> None:
        text_width = draw.textlength(text, font=font)
        draw.text(((self.width - text_width) / 2, y), text, font=font, fill=fill)

    @staticmethod
    def _wrap_to_width(draw: ImageDraw.ImageDraw, text: str, font: Any, max_width: int) -> list[str]:
        lines: list[str] = []
        current = ""
        for word in text.split():
            candidate = f"{current} {word}" if current else word
            if current and draw.textlength(candidate, font=font) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        if current:
            lines.append(current)
        return lines

    def _save(self, image: Image.Image, asset_id: str, frames_dir: Path) -> FrameAsset:
        path = frames_dir / f"{asset_id}.png"
        try:
            buffer = BytesIO()
            image.save(buffer, format="PNG")
            data = buffer.getvalue()
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise LocalAssetError(f"Could not write frame {path}: {e}") from e

        self.logger.debug(f"Frame written: {path} ({len(data)} bytes)")
        return FrameAsset(asset_id=asset_id, path=path, data=data)
