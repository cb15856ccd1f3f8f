"""Tests for Script Synthesizer service."""

import json
from unittest.mock import MagicMock

import pytest

from onboardai.core.exceptions import ModelOutputError
from onboardai.models.schemas import RepositoryContext, RepositoryFile, RepositoryIdentity
from onboardai.services.script_synthesizer import JSON_ONLY_INSTRUCTION, ScriptSynthesizer, build_prompt


@pytest.fixture
def context():
    return RepositoryContext(
        repo=RepositoryIdentity(owner="acme", repo="api", branch="main", default_branch="main"),
        readme=RepositoryFile(path="README.md", content="# Acme API"),
        files=[RepositoryFile(path="app/main.py", content="app = FastAPI()")],
        folder_tree=["README.md", "app/main.py"],
        picked=["README.md", "app/main.py"],
        total_files=2,
    )


@pytest.fixture
def llm_client():
    return MagicMock()


def test_build_prompt_embeds_schema_and_context(context):
    prompt = build_prompt(context)

    assert "Return ONLY valid JSON" in prompt
    assert '"projectName": "string"' in prompt
    assert "Scene 1: PROJECT OVERVIEW" in prompt
    assert "Scene 6 (optional): CONTRIBUTING" in prompt
    assert prompt.rstrip().endswith(json.dumps(context.to_prompt_dict()))
    assert '"defaultBranch": "main"' in prompt


def test_synthesize_valid_json(settings, logger, llm_client, context, sample_script_dict):
    llm_client.generate.return_value = json.dumps(sample_script_dict)
    synthesizer = ScriptSynthesizer(settings, logger, llm_client=llm_client)

    script = synthesizer.synthesize(context, model="models/test")

    assert script.project_name == "Acme API"
    assert len(script.scenes) == 3
    llm_client.generate.assert_called_once()
    assert llm_client.generate.call_args.kwargs["model"] == "models/test"


def test_reprompts_once_on_invalid_json(settings, logger, llm_client, context, sample_script_dict):
    llm_client.generate.side_effect = ["I think the answer is...", json.dumps(sample_script_dict)]
    synthesizer = ScriptSynthesizer(settings, logger, llm_client=llm_client)

    script = synthesizer.synthesize(context)

    assert script.project_name == "Acme API"
    assert llm_client.generate.call_count == 2
    retry_prompt = llm_client.generate.call_args_list[1].args[0]
    assert retry_prompt.endswith(JSON_ONLY_INSTRUCTION)


def test_salvages_fenced_json_from_reprompt(settings, logger, llm_client, context, sample_script_dict):
    fenced = "Here you go:\n```json\n" + json.dumps(sample_script_dict) + "\n```"
    llm_client.generate.side_effect = ["not json", fenced]
    synthesizer = ScriptSynthesizer(settings, logger, llm_client=llm_client)

    script = synthesizer.synthesize(context)

    assert script.one_liner == sample_script_dict["oneLiner"]


def test_model_output_error_after_three_parse_failures(settings, logger, llm_client, context):
    llm_client.generate.side_effect = ["not json", "still not json"]
    synthesizer = ScriptSynthesizer(settings, logger, llm_client=llm_client)

    with pytest.raises(ModelOutputError) as exc_info:
        synthesizer.synthesize(context)

    assert exc_info.value.reason == "model_output_not_json"
    assert exc_info.value.raw == "still not json"
    assert llm_client.generate.call_count == 2


def test_missing_scenes_repaired(settings, logger, llm_client, context):
    llm_client.generate.return_value = json.dumps({"projectName": "Acme", "oneLiner": "Widgets"})
    synthesizer = ScriptSynthesizer(settings, logger, llm_client=llm_client)

    script = synthesizer.synthesize(context)

    assert script.scenes == []
