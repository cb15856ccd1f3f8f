"""Script Repair - coerces near-miss LLM output into a valid OnboardingScript.

Repair runs as a short pipeline of pure functions with validation between
stages:

1. validate the document as returned by the model;
2. ``normalize_document``: backfill the fields models most often drop or rename;
3. ``minimal_document``: keep only fields that validate on their own and fall
   back to defaults for the rest.

Each stage only ever adds defaults; none of them invents scene content. A
document that already validates is returned unchanged.
"""

from copy import deepcopy
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from onboardai.core.exceptions import SchemaRepairError
from onboardai.models.schemas import (
    Architecture,
    ContributorStartPoint,
    OnboardingScript,
    SceneDuration,
    SetupGuide,
    VisualType,
)

DEFAULT_PROJECT_NAME = "Unknown Project"
DEFAULT_ONE_LINER = "A software project"

PROJECT_NAME_SOURCES = ("name", "title")
ONE_LINER_SOURCES = ("description", "tagline", "summary")

_string_list = TypeAdapter(list[str])
_optional_fields: dict[str, tuple[TypeAdapter, Any]] = {
    "techStack": (_string_list, list),
    "architecture": (TypeAdapter(Architecture), lambda: {"overview": "", "keyModules": []}),
    "setup": (TypeAdapter(SetupGuide), lambda: {"prerequisites": [], "steps": [], "runCommands": []}),
    "contributorStartPoints": (TypeAdapter(list[ContributorStartPoint]), list),
}
_duration = TypeAdapter(SceneDuration)


def _text(value: Any) -> Optional[str]:
    """value if it is a non-empty string, else None."""
    return value if isinstance(value, str) and value else None


def _first_text(source: dict[str, Any], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        text = _text(source.get(key))
        if text is not None:
            return text
    return None


def _strings(value: Any) -> list[str]:
    """String items of a list; anything else becomes []."""
    return [item for item in value if isinstance(item, str)] if isinstance(value, list) else []


def _is_valid(adapter: TypeAdapter, value: Any) -> bool:
    try:
        adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def default_visual_dict() -> dict[str, Any]:
    return {"type": VisualType.BULLET_LIST.value, "description": "", "highlights": []}


def validate_script(document: Any) -> tuple[Optional[OnboardingScript], list[dict[str, Any]]]:
    """
    Validate a document against the onboarding script schema.

    Returns:
        (script, []) on success, (None, issues) on failure
    """
    try:
        return OnboardingScript.model_validate(document), []
    except ValidationError as e:
        return None, e.errors(include_url=False, include_context=False)


def normalize_scene(scene: Any, position: int) -> dict[str, Any]:
    """Backfill a scene's id, title, narration, on-screen text and visual."""
    source = scene if isinstance(scene, dict) else {}
    fixed = deepcopy(source)

    visual = source.get("visual")
    fixed["id"] = _text(source.get("id")) or f"scene-{position}"
    fixed["title"] = _text(source.get("title")) or f"Scene {position}"
    fixed["narration"] = (
        _text(source.get("narration"))
        or _text(source.get("description"))
        or (_text(visual.get("description")) if isinstance(visual, dict) else None)
        or ""
    )
    fixed["onScreenText"] = _strings(source.get("onScreenText"))

    if not isinstance(visual, dict):
        fixed["visual"] = default_visual_dict()
    else:
        fixed_visual = deepcopy(visual)
        if not isinstance(visual.get("description"), str):
            fixed_visual["description"] = ""
        fixed_visual["highlights"] = _strings(visual.get("highlights"))
        fixed_visual.setdefault("type", VisualType.BULLET_LIST.value)
        fixed["visual"] = fixed_visual

    return fixed


def normalize_document(document: dict[str, Any]) -> dict[str, Any]:
    """
    First repair stage: fix the common ways model output misses the schema.

    - missing or non-list ``scenes`` becomes ``[]``
    - ``projectName`` is taken from ``name``/``title`` when absent
    - ``oneLiner`` is taken from ``description``/``tagline``/``summary`` when absent
    - string lists (``techStack``, ``onScreenText``, ``highlights``) keep only their string items
    - every scene gets an id, title, narration, on-screen text and visual

    The input is not modified.
    """
    fixed = deepcopy(document)

    if _text(document.get("projectName")) is None:
        name = _first_text(document, PROJECT_NAME_SOURCES)
        if name is not None:
            fixed["projectName"] = name
    if _text(document.get("oneLiner")) is None:
        one_liner = _first_text(document, ONE_LINER_SOURCES)
        if one_liner is not None:
            fixed["oneLiner"] = one_liner
    if isinstance(document.get("techStack"), list):
        fixed["techStack"] = _strings(document["techStack"])

    scenes = document.get("scenes")
    if not isinstance(scenes, list):
        scenes = []
    fixed["scenes"] = [normalize_scene(scene, position) for position, scene in enumerate(scenes, start=1)]
    return fixed


def minimal_visual(visual: dict[str, Any]) -> dict[str, Any]:
    """Visual rebuilt from its valid fields; unknown types become bullet_list on validation."""
    return {
        "type": visual.get("type", VisualType.BULLET_LIST.value),
        "description": visual.get("description") if isinstance(visual.get("description"), str) else "",
        "highlights": _strings(visual.get("highlights")),
    }


def minimal_document(document: dict[str, Any]) -> dict[str, Any]:
    """
    Last repair stage: a document built only from fields that validate on their own.

    Invalid optional sections fall back to empty defaults. String lists keep
    their string items, a visual is rebuilt field by field and an invalid
    durationSec is dropped.
    """
    minimal: dict[str, Any] = {
        "projectName": _text(document.get("projectName")) or DEFAULT_PROJECT_NAME,
        "oneLiner": _text(document.get("oneLiner")) or DEFAULT_ONE_LINER,
    }
    for key, (adapter, default) in _optional_fields.items():
        value = document.get(key)
        minimal[key] = value if value is not None and _is_valid(adapter, value) else default()
    if isinstance(document.get("techStack"), list):
        minimal["techStack"] = _strings(document["techStack"])

    scenes = document.get("scenes")
    minimal_scenes = []
    for position, scene in enumerate(scenes if isinstance(scenes, list) else [], start=1):
        source = scene if isinstance(scene, dict) else {}
        kept: dict[str, Any] = {
            "id": _text(source.get("id")) or f"scene-{position}",
            "title": _text(source.get("title")) or f"Scene {position}",
            "narration": source.get("narration") if isinstance(source.get("narration"), str) else "",
        }
        if isinstance(source.get("onScreenText"), list):
            kept["onScreenText"] = _strings(source["onScreenText"])
        if isinstance(source.get("visual"), dict):
            kept["visual"] = minimal_visual(source["visual"])
        if "durationSec" in source and _is_valid(_duration, source["durationSec"]):
            kept["durationSec"] = source["durationSec"]
        minimal_scenes.append(kept)
    minimal["scenes"] = minimal_scenes
    return minimal


def repair_script(document: Any, logger: Any = None) -> OnboardingScript:
    """
    Validate a model document, repairing it if needed.

    Args:
        document: Parsed JSON returned by the model
        logger: Optional logger for repair diagnostics

    Returns:
        A valid onboarding script

    Raises:
        SchemaRepairError: If no stage yields a valid script
    """
    if not isinstance(document, dict):
        raise SchemaRepairError(
            "Invalid JSON schema from model",
            issues=[{"type": "dict_type", "loc": [], "msg": "Top-level document must be a JSON object"}],
            raw=document,
            attempted_fix=None,
        )

    script, issues = validate_script(document)
    if script is not None:
        return script

    if logger:
        logger.warning(f"Model output failed validation ({len(issues)} issues); normalizing")
    fixed = normalize_document(document)
    script, fixed_issues = validate_script(fixed)
    if script is not None:
        return script

    if logger:
        logger.warning(f"Normalized output still invalid ({len(fixed_issues)} issues); falling back to minimal script")
    script, _ = validate_script(minimal_document(fixed))
    if script is not None:
        return script

    raise SchemaRepairError(
        "Invalid JSON schema from model",
        issues=fixed_issues,
        raw=document,
        attempted_fix=fixed,
    )
