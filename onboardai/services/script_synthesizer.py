"""Script Synthesizer - asks the LLM for a structured onboarding script."""

import json
from typing import Any, Optional

from onboardai.core.config import Settings
from onboardai.core.exceptions import ModelOutputError
from onboardai.models.schemas import OnboardingScript, RepositoryContext
from onboardai.services.llm_client import LLMClient
from onboardai.services.script_repair import repair_script
from onboardai.utils.json_utils import salvage_json_object, try_parse_json

JSON_ONLY_INSTRUCTION = "IMPORTANT: Output MUST be valid JSON ONLY. Do not wrap in ``` and do not add any explanation."

SCHEMA_HINT: dict[str, Any] = {
    "projectName": "string",
    "oneLiner": "string",
    "techStack": ["string"],
    "architecture": {
        "overview": "string",
        "keyModules": [{"name": "string", "responsibility": "string", "files": ["path"]}],
        "dataFlow": "string (optional)",
    },
    "setup": {"prerequisites": ["string"], "steps": ["string"], "runCommands": ["string"]},
    "contributorStartPoints": [{"title": "string", "description": "string", "suggestedFiles": ["path"]}],
    "scenes": [
        {
            "id": "scene-1",
            "title": "string",
            "narration": "string",
            "onScreenText": ["string"],
            "visual": {
                "type": "title|folder_tree|diagram|code_highlight|bullet_list",
                "description": "string",
                "highlights": ["string"],
            },
            "durationSec": 15,
        }
    ],
}

PROMPT_HEADER = [
    "You are an expert senior engineer creating a comprehensive onboarding video for a new developer joining this codebase.",
    "Your goal is to create an engaging, diverse, and technically deep script that helps developers understand the project quickly.",
    "",
    "CRITICAL: Return ONLY valid JSON. No markdown code fences (```json), no explanations, no comments.",
    "The JSON must be parseable and match this exact structure:",
]

PROMPT_DIRECTIVES = [
    "",
    "Required fields:",
    "- projectName: string",
    "- oneLiner: string (compelling one-liner)",
    "- techStack: array of technologies used",
    "- architecture: overview of how the system works",
    "- setup: prerequisites, steps, and run commands",
    "- contributorStartPoints: where new contributors should start",
    "- scenes: 5-7 diverse scenes with clear narration and visuals",
    "",
    "Visual types must be one of: title, folder_tree, diagram, code_highlight, bullet_list",
    "",
    "DEEP ANALYSIS REQUIREMENTS:",
    "1. ARCHITECTURE & DESIGN: Explain the system architecture, key design patterns, and how components interact",
    "2. DATA FLOW: Describe how data flows through the application (requests, processing, responses)",
    "3. KEY MODULES: Identify and explain the main modules/services and their responsibilities",
    "4. CODE INSIGHTS: Point out important files, key functions, and critical business logic",
    "5. TECHNOLOGY CHOICES: Explain why specific technologies/libraries are used",
    "6. SETUP & ENVIRONMENT: Provide clear setup instructions with exact commands",
    "7. CONTRIBUTION GUIDE: Show new developers where they should focus their efforts",
    "",
    "SCENE DIVERSITY & STRUCTURE:",
    "- Scene 1: PROJECT OVERVIEW - What does this project do? Who uses it? Why does it exist?",
    "- Scene 2: ARCHITECTURE & KEY CONCEPTS - How is the system designed? What are main components?",
    "- Scene 3: DEEP TECHNICAL DIVE - Code structure, important files, key modules, data models",
    "- Scene 4: HOW IT WORKS - Data flow, request lifecycle, processing pipeline, core logic",
    "- Scene 5: SETUP & RUNNING - Prerequisites, installation, configuration, how to run locally",
    "- Scene 6 (optional): CONTRIBUTING - Where to start, important files to edit, coding standards",
    "",
    "NARRATION QUALITY:",
    "- Make narration engaging and conversational (like a senior engineer talking to you)",
    "- Include specific code examples and file paths",
    "- Explain WHY things are done, not just WHAT",
    "- Use clear technical language appropriate for developers",
    "- Each scene narration: 100-200 words (about 30-60 seconds of video)",
    "",
    "HIGHLIGHTS & VISUAL DESCRIPTIONS:",
    "- Include 2-3 key highlights per scene",
    "- Visual descriptions should be specific and actionable",
    "- Use 'code_highlight' type for showing important code snippets",
    "- Use 'diagram' type for architecture, flows, or relationships",
    "- Use 'folder_tree' type for showing project structure",
    "",
    "IMPORTANT:",
    "- Extract specific file paths from the code and mention them in narration",
    "- Explain the purpose and importance of each major component",
    "- Make it clear how a new developer should approach understanding this codebase",
    "- Total video target: 3-5 minutes of engaging content",
    "",
    "Repository context:",
]


def build_prompt(context: RepositoryContext) -> str:
    """Assemble the single synthesis prompt: schema hint, directives and repository context."""
    lines = [
        *PROMPT_HEADER,
        json.dumps(SCHEMA_HINT, indent=2),
        *PROMPT_DIRECTIVES,
        json.dumps(context.to_prompt_dict()),
    ]
    return "\n".join(lines)


class ScriptSynthesizer:
    """Turns a RepositoryContext into a validated OnboardingScript."""

    def __init__(self, settings: Settings, logger: Any, llm_client: Optional[LLMClient] = None):
        """
        Initialize the script synthesizer.

        Args:
            settings: Application settings
            logger: Logger instance
            llm_client: LLM client (created from settings if omitted)
        """
        self.settings = settings
        self.logger = logger
        self.llm_client = llm_client or LLMClient(settings, logger)

    def synthesize(self, context: RepositoryContext, model: Optional[str] = None) -> OnboardingScript:
        """
        Generate and validate an onboarding script.

        Args:
            context: Ingested repository context
            model: Optional model override

        Returns:
            Validated onboarding script

        Raises:
            TransientLLMError: Provider stayed overloaded or rate limited
            LLMError: Terminal provider failure
            ModelOutputError: No parseable JSON after the corrective re-prompt
            SchemaRepairError: JSON could not be repaired into a valid script
        """
        prompt = build_prompt(context)
        self.logger.info(
            f"Synthesizing script for {context.repo.owner}/{context.repo.repo} "
            f"({len(context.files)} files, prompt {len(prompt)} chars)"
        )

        document = self.parse_response(prompt, self.llm_client.generate(prompt, model=model), model)
        script = repair_script(document, logger=self.logger)

        self.logger.info(f"Script ready: {script.project_name} ({len(script.scenes)} scenes)")
        return script

    def parse_response(self, prompt: str, text: str, model: Optional[str] = None) -> Any:
        """
        Parse model text as JSON, re-prompting once for strict JSON if needed.

        The re-prompt's response is parsed directly, then by salvaging the
        span between its first '{' and last '}'.
        """
        ok, document = try_parse_json(text)
        if ok:
            return document

        self.logger.warning("Model response was not valid JSON; re-prompting for strict JSON")
        retry_text = self.llm_client.generate(f"{prompt}\n\n{JSON_ONLY_INSTRUCTION}", model=model)

        ok, document = try_parse_json(retry_text)
        if ok:
            return document

        ok, document = salvage_json_object(retry_text)
        if ok:
            self.logger.info("Recovered JSON object embedded in model response")
            return document

        raise ModelOutputError("Model did not return structured output", raw=retry_text or text)
