"""Direct LLM transport.

Implements the same interface as ``AIServiceClient`` but builds the prompts
locally and talks to an OpenAI-compatible ``/chat/completions`` endpoint,
for setups without the hosted service.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from onepager.editor.actions import is_summarize_action
from onepager.models.ai_payloads import (
    GenerationRequest,
    GenerationResponse,
    RefineRequest,
    RefineResponse,
)
from onepager.services.ai_client import AIServiceClient
from onepager.services.exceptions import AIServiceError
from onepager.services.prompts import build_generation_prompt, build_refine_prompt
from onepager.utils.logging import get_logger


logger = get_logger(__name__)

CHAT_COMPLETIONS_PATH = "chat/completions"

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _parse_json_content(content: str) -> Any:
    """Decode a JSON answer, tolerating a surrounding markdown code fence."""
    text = content.strip()
    match = _CODE_FENCE.match(text)
    if match:
        text = match.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise AIServiceError(f"Model returned invalid JSON: {e}") from e


class LLMBackend(AIServiceClient):
    """Generation and refinement via a chat-completions model."""

    async def _complete(self, prompt: str, json_mode: bool) -> str:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        data = await self._post(CHAT_COMPLETIONS_PATH, payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError("Model response has no message content") from e
        if not isinstance(content, str):
            raise AIServiceError("Model response has no message content")
        return content

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        content = await self._complete(build_generation_prompt(request.title), json_mode=True)
        try:
            return GenerationResponse.model_validate(_parse_json_content(content))
        except ValidationError as e:
            raise AIServiceError(f"Malformed generation response: {e}") from e

    async def refine(self, request: RefineRequest) -> RefineResponse:
        summarize = is_summarize_action(request.specific_action)
        content = await self._complete(build_refine_prompt(request), json_mode=summarize)

        if not summarize:
            return RefineResponse(refined_text=content.strip())

        try:
            return RefineResponse.model_validate(_parse_json_content(content))
        except ValidationError as e:
            raise AIServiceError(f"Malformed summarize response: {e}") from e
