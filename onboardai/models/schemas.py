"""Pydantic models and schemas for the onboarding video pipeline."""

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Enums
# ============================================================================


class VisualType(str, Enum):
    """Kind of visual drawn for a scene."""

    TITLE = "title"
    FOLDER_TREE = "folder_tree"
    DIAGRAM = "diagram"
    CODE_HIGHLIGHT = "code_highlight"
    BULLET_LIST = "bullet_list"


class SegmentKind(str, Enum):
    """Position class of a segment in the timeline."""

    INTRO = "intro"
    SCENE = "scene"
    OUTRO = "outro"


class PipelineStage(str, Enum):
    """States of a pipeline run."""

    IDLE = "idle"
    SCRIPTING = "scripting"
    PER_SCENE = "per_scene"
    ASSEMBLING = "assembling"
    OPTIMIZING = "optimizing"
    DONE = "done"
    ERRORED = "errored"


# ============================================================================
# Repository Context Models
# ============================================================================


class RepositoryRef(BaseModel):
    """Parsed repository locator."""

    owner: str = Field(..., description="Repository owner (user or organisation)")
    repo: str = Field(..., description="Repository name")
    ref: Optional[str] = Field(default=None, description="Branch/tag requested in the locator, if any")


class RepositoryIdentity(BaseModel):
    """Repository identity after the branch has been resolved."""

    owner: str = Field(..., description="Repository owner")
    repo: str = Field(..., description="Repository name")
    ref: Optional[str] = Field(default=None, description="Requested ref")
    branch: str = Field(..., description="Branch the content was read from")
    default_branch: str = Field(..., description="Repository default branch")


class RepositoryFile(BaseModel):
    """A (path, truncated content) pair."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the repository root")
    content: str = Field(..., description="UTF-8 text content (possibly truncated)")


class RepositoryContext(BaseModel):
    """Everything the script synthesizer knows about a repository."""

    model_config = ConfigDict(frozen=True)

    repo: RepositoryIdentity = Field(..., description="Repository identity")
    readme: Optional[RepositoryFile] = Field(default=None, description="Truncated README, if any")
    files: list[RepositoryFile] = Field(default_factory=list, description="Picked files with truncated content")
    folder_tree: list[str] = Field(default_factory=list, description="Flat listing of blob paths")
    picked: list[str] = Field(default_factory=list, description="Paths chosen for content fetching")
    total_files: int = Field(default=0, description="Number of blobs in the repository tree")

    def to_prompt_dict(self) -> dict[str, Any]:
        """Serialize in the shape embedded in the LLM prompt."""
        return {
            "repo": {
                "owner": self.repo.owner,
                "repo": self.repo.repo,
                "branch": self.repo.branch,
                "defaultBranch": self.repo.default_branch,
            },
            "folderTree": self.folder_tree,
            "readme": self.readme.model_dump() if self.readme else None,
            "files": [f.model_dump() for f in self.files],
        }


# ============================================================================
# Onboarding Script Models
# ============================================================================


class KeyModule(CamelModel):
    """A major module of the codebase."""

    name: str
    responsibility: str
    files: list[str] = Field(default_factory=list)


class Architecture(CamelModel):
    """Architecture overview."""

    overview: str = ""
    key_modules: list[KeyModule] = Field(default_factory=list)
    data_flow: Optional[str] = None


class SetupGuide(CamelModel):
    """How to get the project running."""

    prerequisites: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    run_commands: list[str] = Field(default_factory=list)


class ContributorStartPoint(CamelModel):
    """Where a new contributor should start."""

    title: str
    description: str
    suggested_files: list[str] = Field(default_factory=list)


class SceneVisual(CamelModel):
    """Visual descriptor of a scene."""

    type: VisualType = VisualType.BULLET_LIST
    description: str
    highlights: list[str] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _fallback_to_bullet_list(cls, value: Any) -> Any:
        """Unknown visual kinds render as a bullet list."""
        if isinstance(value, VisualType):
            return value
        if isinstance(value, str) and value in {v.value for v in VisualType}:
            return value
        return VisualType.BULLET_LIST


def default_visual() -> SceneVisual:
    """Visual used when a scene has none."""
    return SceneVisual(type=VisualType.BULLET_LIST, description="", highlights=[])


SceneDuration = Annotated[float, Field(ge=5, le=60)]


class Scene(CamelModel):
    """One narrated, visually distinct unit of the onboarding script."""

    id: str
    title: str
    narration: str
    on_screen_text: list[str] = Field(default_factory=list)
    visual: SceneVisual = Field(default_factory=default_visual)
    # Advisory only; rendering derives duration from narration/audio length
    duration_sec: Optional[SceneDuration] = None


class OnboardingScript(CamelModel):
    """The structured onboarding script returned by the LLM."""

    project_name: str
    one_liner: str
    tech_stack: list[str] = Field(default_factory=list)
    architecture: Architecture = Field(default_factory=Architecture)
    setup: SetupGuide = Field(default_factory=SetupGuide)
    contributor_start_points: list[ContributorStartPoint] = Field(default_factory=list)
    scenes: list[Scene]


# ============================================================================
# Media Models
# ============================================================================


class AudioAsset(BaseModel):
    """Narration audio persisted for one scene or card."""

    asset_id: str = Field(..., description="Scene id, or 'intro'/'outro' for cards")
    path: Path = Field(..., description="Persisted audio file")
    data: bytes = Field(..., description="Audio bytes as returned by the provider")
    provider: str = Field(..., description="Provider of origin ('silence' for placeholders)")
    duration_seconds: Optional[float] = Field(default=None, description="Known duration (placeholders only)")

    @property
    def is_silent(self) -> bool:
        return self.provider == "silence"


class FrameAsset(BaseModel):
    """Raster frame persisted for one scene or card."""

    asset_id: str = Field(..., description="Scene id, or 'intro'/'outro' for cards")
    path: Path = Field(..., description="Persisted PNG file")
    data: bytes = Field(..., description="PNG bytes")


class Segment(BaseModel):
    """A playable video file at a fixed position in the timeline."""

    ordinal: int = Field(..., description="Position in the final timeline (intro = 0)")
    kind: SegmentKind = Field(..., description="intro, scene or outro")
    path: Path = Field(..., description="Persisted video file")
    scene_id: Optional[str] = Field(default=None, description="Scene id (None for cards)")


class Timeline(BaseModel):
    """Ordered segments and the final encoded artifact."""

    segments: list[Segment] = Field(default_factory=list, description="Segments in manifest order")
    output_path: Optional[Path] = Field(default=None, description="Final encoded video")
    size_bytes: int = Field(default=0, description="Final video size")
    duration_seconds: Optional[float] = Field(default=None, description="Probed duration, if available")
    optimized: bool = Field(default=False, description="Whether the delivery re-encode succeeded")


# ============================================================================
# Pipeline Result Models
# ============================================================================


class ScriptResult(BaseModel):
    """A synthesized script plus where it came from."""

    script: OnboardingScript
    model: str
    repo: RepositoryIdentity
    picked: list[str] = Field(default_factory=list)


class RenderMetadata(CamelModel):
    """Run metadata returned with a rendered video."""

    project_name: str
    scene_count: int
    total_scenes: int = Field(..., description="Scenes plus intro and outro cards")
    segment_count: int = Field(..., description="Segments that made it into the timeline")
    estimated_duration_seconds: int
    duration_seconds: Optional[float] = None


class RenderedVideo(BaseModel):
    """Final encoded video."""

    data: bytes
    content_type: str = "video/mp4"
    size_bytes: int
    metadata: RenderMetadata

    @property
    def size_mb(self) -> float:
        return round(self.size_bytes / 1024 / 1024, 2)


class AssetPlanEntry(CamelModel):
    """Planned assets for one scene (no media generated)."""

    scene_id: str
    visual_type: VisualType
    title: str
    narration: str
    description: str
    highlights: list[str] = Field(default_factory=list)
    duration: int


class AssetPlan(CamelModel):
    """Planned assets for a whole script."""

    assets: list[AssetPlanEntry] = Field(default_factory=list)
    estimated_duration: int = 0


# ============================================================================
# API Request Models
# ============================================================================


class RepositoryRequest(CamelModel):
    """Request carrying a repository locator."""

    repo_url: Optional[str] = None
    model: Optional[str] = None


class ScriptRequest(BaseModel):
    """Request carrying a script to plan or render (validated by the route)."""

    script: Optional[dict[str, Any]] = None
