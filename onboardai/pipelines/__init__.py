"""Pipeline orchestrators for OnboardAI."""

from onboardai.pipelines.onboarding_pipeline import OnboardingPipeline, estimate_video_duration, plan_assets
from onboardai.pipelines.run_full_pipeline import main

__all__ = ["OnboardingPipeline", "estimate_video_duration", "plan_assets", "main"]
