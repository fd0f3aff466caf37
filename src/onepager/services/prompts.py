"""Prompt templates for the generative backend.

Used by ``LLMBackend`` when onepager talks to a chat model directly
instead of going through the hosted service.
"""

from textwrap import dedent

from onepager.editor.actions import is_summarize_action
from onepager.models.ai_payloads import RefineRequest


GENERATED_SECTIONS = [
    "Problem Statement",
    "Proposed Solution",
    "Target Audience",
    "Success Metrics",
    "Potential Risks",
    "Mitigation Plan",
    "Timeline",
]


def build_generation_prompt(title: str) -> str:
    """Build the "Working Backwards" prompt that drafts a whole one-pager.

    Args:
        title: Product title entered by the user

    Returns:
        Prompt asking for a JSON object ``{"fields": [{"label", "value"}, ...]}``
    """
    sections = "\n".join(f"- {section}" for section in GENERATED_SECTIONS)
    return dedent("""
        You are an expert Senior Product Manager, using the "Working Backwards" process to flesh out a new product idea.

        The title of the new product is: "{title}"

        Your task is to first, internally, write a short, future-dated press release announcing this product to the world. The press release should be customer-obsessed and clearly explain the user's problem and how the product solves it.

        Second, using ONLY the information from the press release you just wrote, generate a structured one-pager document.

        You MUST return your response as a valid JSON object. The JSON object must have a single key, "fields", which is an array of objects. Each object in the array must have two keys: "label" and "value".

        The sections you MUST generate are:
        {sections}

        Example of the required JSON format:
        {{
          "fields": [
            {{ "label": "Problem Statement", "value": "Your generated text..." }},
            {{ "label": "Proposed Solution", "value": "Your generated text..." }}
          ]
        }}

        Do not include the press release in the final JSON output, only use it for your internal thinking to generate the fields.
    """).strip().format(title=title, sections=sections)


def build_summarize_prompt(text: str) -> str:
    """Build the prompt that condenses one block into bullet points."""
    return dedent("""
        You are an expert Product Manager. Analyze the following text block and summarize its essential information.

        TEXT BLOCK TO ANALYZE:
        {text}

        Your task is to return ONLY a valid JSON object. The object must have a single key, "items", which is an array of strings. Each string in the array should be one key bullet point.

        Example format:
        {{
          "items": [
            "This is the first key point.",
            "This is the second key point."
          ]
        }}

        Do not include any other text or explanation outside of the JSON object.
    """).strip().format(text=text)


def build_refine_prompt(request: RefineRequest) -> str:
    """
    Build the prompt for a refine request.

    Summarize-type actions get the bullet-point prompt; every other action
    gets the whole document as context plus the section to rework.
    """
    if is_summarize_action(request.specific_action):
        return build_summarize_prompt(request.target_field.value)

    context = request.document_context
    full_document_text = "\n\n".join(
        f"## {field.label}\n{field.value}" for field in context.fields
    )
    return dedent("""
        You are an expert Product Manager providing feedback on a new product proposal.
        Here is the full context of the document:
        ---
        # Document Title: {title}
        {document}
        ---
        Now, focus ONLY on the following section:
        ## Section to Refine: {label}
        ### Current Content:
        {value}
        Your specific task is to: "{action}".
        Provide ONLY the improved text for this section.
    """).strip().format(
        title=context.title,
        document=full_document_text,
        label=request.target_field.label,
        value=request.target_field.value,
        action=request.specific_action,
    )
