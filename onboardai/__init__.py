"""OnboardAI - narrated onboarding videos for GitHub repositories."""

__version__ = "1.0.0"
