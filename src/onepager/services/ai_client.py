"""HTTP client for the generative AI service."""

import asyncio
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from onepager.models.ai_payloads import (
    GenerationRequest,
    GenerationResponse,
    RefineRequest,
    RefineResponse,
)
from onepager.models.config import AIServiceConfig
from onepager.services.exceptions import AIServiceError
from onepager.utils.logging import get_logger


logger = get_logger(__name__)

GENERATE_PATH = "generate-one-pager"
REFINE_PATH = "refine-with-ai"


class AITransport(Protocol):
    """Request/response interface to a generative backend."""

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        ...

    async def refine(self, request: RefineRequest) -> RefineResponse:
        ...


class AIServiceClient:
    """
    Client for the hosted AI service.

    Posts JSON to ``<endpoint>/generate-one-pager`` and
    ``<endpoint>/refine-with-ai``. Connection errors and timeouts are retried;
    HTTP error statuses are not.
    """

    def __init__(
        self,
        config: AIServiceConfig,
        retry_delay: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize AI service client.

        Args:
            config: AI backend configuration (endpoint, API key, timeouts)
            retry_delay: Delay in seconds between retries
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.retry_delay = retry_delay
        self.timeout = httpx.Timeout(
            connect=10.0,
            read=config.timeout,
            write=10.0,
            pool=10.0
        )
        self._transport = transport

    def _url(self, path: str) -> str:
        return str(self.config.endpoint).rstrip("/") + "/" + path

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "apikey": self.config.api_key,
        }

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """
        POST a JSON body and return the decoded JSON response.

        Raises:
            AIServiceError: On HTTP error status, exhausted retries, or a
                response that is not a JSON object
        """
        url = self._url(path)
        max_retries = self.config.max_retries
        attempt = 0

        logger.info("ai_request_started", url=url)
        logger.debug("ai_request_payload", url=url, payload=body)

        while True:
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.post(url, json=body, headers=self._headers())
                    response.raise_for_status()
                    break

            except (httpx.ConnectError, httpx.ReadTimeout, httpx.ConnectTimeout) as e:
                attempt += 1
                if attempt > max_retries:
                    logger.error("ai_request_failed", url=url, attempts=attempt, error=str(e))
                    raise AIServiceError(f"AI service unreachable: {e}") from e

                logger.warning(
                    "ai_request_retry",
                    url=url,
                    attempt=attempt,
                    max_retries=max_retries,
                    error=str(e),
                    retry_delay=self.retry_delay,
                )
                await asyncio.sleep(self.retry_delay)

            except httpx.HTTPStatusError as e:
                # Don't retry on error statuses (bad request, auth, backend failure)
                status_code = e.response.status_code
                message = _error_message(e.response)
                logger.error("ai_http_error", url=url, status_code=status_code, error=message)
                raise AIServiceError(message, status_code=status_code) from e

            except httpx.HTTPError as e:
                logger.error("ai_request_failed", url=url, error=str(e))
                raise AIServiceError(f"AI request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            # JSONDecodeError, or UnicodeDecodeError for a body that is not UTF-8
            logger.error(
                "ai_malformed_response",
                url=url,
                body=response.content[:500].decode("utf-8", errors="replace"),
                error=str(e),
            )
            raise AIServiceError("AI service returned invalid JSON") from e

        if not isinstance(data, dict):
            raise AIServiceError("AI service returned an unexpected payload")

        logger.debug("ai_response_payload", url=url, payload=data)
        logger.info("ai_request_completed", url=url, status_code=response.status_code)
        return data

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Request a full set of sections for a title."""
        data = await self._post(GENERATE_PATH, request.model_dump())
        # The hosted function wraps its result in "generatedOnePager"
        payload = data.get("generatedOnePager", data)
        try:
            return GenerationResponse.model_validate(payload)
        except ValidationError as e:
            raise AIServiceError(f"Malformed generation response: {e}") from e

    async def refine(self, request: RefineRequest) -> RefineResponse:
        """Request a refined value for one field."""
        data = await self._post(REFINE_PATH, request.model_dump(by_alias=True))
        try:
            return RefineResponse.model_validate(data)
        except ValidationError as e:
            raise AIServiceError(f"Malformed refine response: {e}") from e


def _error_message(response: httpx.Response) -> str:
    """Pull the service's ``{"error": ...}`` message out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or "AI service request failed"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return "AI service request failed"
