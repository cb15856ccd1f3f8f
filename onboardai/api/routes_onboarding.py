"""FastAPI routes for repository ingestion, script synthesis and video rendering."""

import base64
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import ValidationError

from onboardai.core.config import settings
from onboardai.core.exceptions import InvalidRequestError
from onboardai.core.logging_config import get_logger
from onboardai.models.schemas import OnboardingScript, RepositoryRequest, ScriptRequest
from onboardai.pipelines.onboarding_pipeline import OnboardingPipeline
from onboardai.services.llm_client import LLMClient
from onboardai.services.repo_ingestor import RepositoryIngestor

router = APIRouter(tags=["onboarding"])


def get_pipeline() -> OnboardingPipeline:
    """Pipeline instance for one request."""
    return OnboardingPipeline(settings, get_logger(__name__))


def get_ingestor() -> RepositoryIngestor:
    return RepositoryIngestor(settings, get_logger(__name__))


def get_llm_client() -> LLMClient:
    return LLMClient(settings, get_logger(__name__))


def _require_repo_url(request: RepositoryRequest) -> str:
    repo_url = (request.repo_url or "").strip()
    if not repo_url:
        raise InvalidRequestError("repoUrl is required")
    return repo_url


def _require_script(request: ScriptRequest) -> OnboardingScript:
    if not request.script:
        raise InvalidRequestError("script is required")
    try:
        return OnboardingScript.model_validate(request.script)
    except ValidationError as e:
        raise InvalidRequestError(
            "Invalid script format", details={"issues": e.errors(include_url=False, include_context=False)}
        ) from e


@router.post("/ingest")
def ingest_repository(
    request: RepositoryRequest, ingestor: RepositoryIngestor = Depends(get_ingestor)
) -> dict[str, Any]:
    """Fetch README, tree and important files of a repository."""
    context = ingestor.ingest(_require_repo_url(request))
    return {
        "ok": True,
        "repo": {
            "owner": context.repo.owner,
            "repo": context.repo.repo,
            "ref": context.repo.ref,
            "branch": context.repo.branch,
            "defaultBranch": context.repo.default_branch,
        },
        "summary": {
            "totalFilesInTree": context.total_files,
            "pickedFiles": len(context.picked),
            "fetchedFiles": len(context.files) + (1 if context.readme else 0),
        },
        "readme": context.readme.model_dump() if context.readme else None,
        "files": [f.model_dump() for f in context.files],
        "picked": context.picked,
    }


@router.post("/script")
def generate_script(
    request: RepositoryRequest, pipeline: OnboardingPipeline = Depends(get_pipeline)
) -> dict[str, Any]:
    """Synthesize an onboarding script for a repository."""
    result = pipeline.generate_script(_require_repo_url(request), model=request.model)
    return {
        "ok": True,
        "model": result.model,
        "repo": {"owner": result.repo.owner, "repo": result.repo.repo, "branch": result.repo.branch},
        "picked": result.picked,
        "script": result.script.model_dump(by_alias=True),
    }


@router.post("/video/plan")
def plan_video(request: ScriptRequest, pipeline: OnboardingPipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Plan per-scene assets without generating media."""
    plan = pipeline.plan_assets(_require_script(request))
    return {"ok": True, **plan.model_dump(by_alias=True, mode="json")}


@router.post("/video/render")
def render_video(request: ScriptRequest, pipeline: OnboardingPipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Render a script into an MP4 returned inline as base64."""
    video = pipeline.render_video(_require_script(request))
    return {
        "ok": True,
        "message": "Video successfully generated!",
        "video": {
            "base64": base64.b64encode(video.data).decode("ascii"),
            "mimeType": video.content_type,
            "size": video.size_bytes,
            "sizeMB": video.size_mb,
        },
        "metadata": video.metadata.model_dump(by_alias=True),
    }


@router.get("/llm/models")
def list_llm_models(llm_client: LLMClient = Depends(get_llm_client)) -> dict[str, Any]:
    """Models available to the configured LLM key."""
    llm_client.ensure_configured()
    return {"ok": True, "provider": llm_client.provider, "models": llm_client.list_models()}


@router.get("/llm/test")
def test_llm(llm_client: LLMClient = Depends(get_llm_client)) -> dict[str, Any]:
    """Round-trip a tiny prompt through the configured LLM."""
    llm_client.ensure_configured()
    return {"ok": True, "model": llm_client.default_model, "text": llm_client.ping()}
