"""Unit tests for prompt templates."""

from onepager.models.ai_payloads import DocumentContext, FieldContext, RefineRequest
from onepager.services.prompts import (
    GENERATED_SECTIONS,
    build_generation_prompt,
    build_refine_prompt,
    build_summarize_prompt,
)


def make_request(action):
    return RefineRequest(
        document_context=DocumentContext(
            title="Mobile App Redesign",
            fields=[
                FieldContext(label="Problem Statement", value="Cluttered interface."),
                FieldContext(label="Proposed Solution", value="New navigation."),
            ],
        ),
        target_field=FieldContext(label="Problem Statement", value="Cluttered interface."),
        specific_action=action,
    )


class TestGenerationPrompt:
    """Tests for the whole-document prompt."""

    def test_includes_title_and_sections(self):
        prompt = build_generation_prompt("Mobile App Redesign")

        assert '"Mobile App Redesign"' in prompt
        for section in GENERATED_SECTIONS:
            assert f"- {section}" in prompt

    def test_json_example_braces_survive_formatting(self):
        prompt = build_generation_prompt("X")

        assert '{ "label": "Problem Statement", "value": "Your generated text..." }' in prompt
        assert "{{" not in prompt

    def test_title_with_braces(self):
        prompt = build_generation_prompt("Project {Alpha}")

        assert "Project {Alpha}" in prompt


class TestRefinePrompt:
    """Tests for per-field prompts."""

    def test_plain_action_includes_whole_document(self):
        prompt = build_refine_prompt(make_request("Improve Writing"))

        assert "# Document Title: Mobile App Redesign" in prompt
        assert "## Proposed Solution\nNew navigation." in prompt
        assert "## Section to Refine: Problem Statement" in prompt
        assert 'Your specific task is to: "Improve Writing".' in prompt

    def test_summarize_action_uses_bullet_prompt(self):
        prompt = build_refine_prompt(make_request("Summarize into Key Points"))

        assert prompt == build_summarize_prompt("Cluttered interface.")
        assert '"items"' in prompt
        assert "Document Title" not in prompt
