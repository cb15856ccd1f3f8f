"""Utility functions for OnboardAI."""

from onboardai.utils.io_utils import create_run_work_dir, remove_work_dir, slugify
from onboardai.utils.text_utils import estimate_spoken_duration, truncate_text

__all__ = [
    "create_run_work_dir",
    "remove_work_dir",
    "slugify",
    "estimate_spoken_duration",
    "truncate_text",
]
