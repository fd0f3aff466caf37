"""Unit tests for AIServiceClient."""

import json

import httpx
import pytest

from onepager.models.ai_payloads import (
    DocumentContext,
    FieldContext,
    GenerationRequest,
    RefineRequest,
)
from onepager.models.config import AIServiceConfig
from onepager.services.ai_client import AIServiceClient
from onepager.services.exceptions import AIServiceError


@pytest.fixture
def ai_config():
    return AIServiceConfig(
        endpoint="https://project.functions.test/v1",
        api_key="test-key",
    )


@pytest.fixture
def requests():
    return []


def make_client(ai_config, requests, handler, **kwargs):
    def record(request):
        requests.append(request)
        return handler(request)

    return AIServiceClient(ai_config, retry_delay=0, transport=httpx.MockTransport(record), **kwargs)


def refine_request(action="Improve Writing"):
    return RefineRequest(
        document_context=DocumentContext(
            title="Title",
            fields=[FieldContext(label="Problem Statement", value="Old text")],
        ),
        target_field=FieldContext(label="Problem Statement", value="Old text"),
        specific_action=action,
    )


class TestAIServiceClient:
    """Test AIServiceClient class."""

    def test_client_initialization(self, ai_config):
        client = AIServiceClient(ai_config)

        assert client.config == ai_config
        assert client.timeout.read == 60.0
        assert client.timeout.connect == 10.0

    @pytest.mark.asyncio
    async def test_generate_unwraps_service_envelope(self, ai_config, requests):
        """Test the hosted function's generatedOnePager wrapper is removed."""
        body = {"generatedOnePager": {"fields": [{"label": "Problem Statement", "value": "P"}]}}
        client = make_client(ai_config, requests, lambda r: httpx.Response(200, json=body))

        response = await client.generate(GenerationRequest(title="My Product"))

        assert [field.label for field in response.fields] == ["Problem Statement"]
        sent = requests[0]
        assert str(sent.url) == "https://project.functions.test/v1/generate-one-pager"
        assert json.loads(sent.content) == {"title": "My Product"}
        assert sent.headers["Authorization"] == "Bearer test-key"
        assert sent.headers["apikey"] == "test-key"

    @pytest.mark.asyncio
    async def test_generate_accepts_bare_payload(self, ai_config, requests):
        body = {"fields": [{"label": "Timeline", "value": "Q3"}]}
        client = make_client(ai_config, requests, lambda r: httpx.Response(200, json=body))

        response = await client.generate(GenerationRequest(title="My Product"))

        assert response.fields[0].value == "Q3"

    @pytest.mark.asyncio
    async def test_refine_sends_camel_case_body(self, ai_config, requests):
        client = make_client(
            ai_config, requests, lambda r: httpx.Response(200, json={"refinedText": "New text"})
        )

        response = await client.refine(refine_request())

        assert response.refined_text == "New text"
        sent = json.loads(requests[0].content)
        assert str(requests[0].url).endswith("/refine-with-ai")
        assert sent["specificAction"] == "Improve Writing"
        assert sent["targetField"] == {"label": "Problem Statement", "value": "Old text"}
        assert sent["documentContext"]["title"] == "Title"

    @pytest.mark.asyncio
    async def test_refine_items_response(self, ai_config, requests):
        client = make_client(
            ai_config, requests, lambda r: httpx.Response(200, json={"items": ["One", "Two"]})
        )

        response = await client.refine(refine_request("Summarize into Key Points"))

        assert response.items == ["One", "Two"]
        assert response.refined_text is None

    @pytest.mark.asyncio
    async def test_error_status_carries_service_message(self, ai_config, requests):
        """Test HTTP errors surface the service's error message and are not retried."""
        client = make_client(
            ai_config,
            requests,
            lambda r: httpx.Response(500, json={"error": "AI service is not configured."}),
        )

        with pytest.raises(AIServiceError) as exc_info:
            await client.refine(refine_request())

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "AI service is not configured."
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_error_status_without_json_body(self, ai_config, requests):
        client = make_client(ai_config, requests, lambda r: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(AIServiceError) as exc_info:
            await client.generate(GenerationRequest(title="T"))

        assert exc_info.value.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_retry_on_connect_error(self, ai_config, requests):
        """Test a connection error is retried once and then succeeds."""
        def handler(request):
            if len(requests) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"refinedText": "ok"})

        client = make_client(ai_config, requests, handler)

        response = await client.refine(refine_request())

        assert response.refined_text == "ok"
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_fails_after_max_retries(self, ai_config, requests):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(ai_config, requests, handler)

        with pytest.raises(AIServiceError, match="unreachable"):
            await client.refine(refine_request())

        assert len(requests) == ai_config.max_retries + 1

    @pytest.mark.asyncio
    async def test_invalid_json_response(self, ai_config, requests):
        client = make_client(ai_config, requests, lambda r: httpx.Response(200, text="not json"))

        with pytest.raises(AIServiceError, match="invalid JSON"):
            await client.refine(refine_request())

    @pytest.mark.asyncio
    async def test_malformed_refine_response(self, ai_config, requests):
        client = make_client(ai_config, requests, lambda r: httpx.Response(200, json={"other": 1}))

        with pytest.raises(AIServiceError, match="Malformed refine response"):
            await client.refine(refine_request())

    @pytest.mark.asyncio
    async def test_non_object_response(self, ai_config, requests):
        client = make_client(ai_config, requests, lambda r: httpx.Response(200, json=["a"]))

        with pytest.raises(AIServiceError, match="unexpected payload"):
            await client.generate(GenerationRequest(title="T"))

    @pytest.mark.asyncio
    async def test_non_utf8_body_is_a_service_error(self, ai_config, requests):
        """Test a 2xx body that cannot be decoded maps to AIServiceError."""
        client = make_client(
            ai_config, requests, lambda r: httpx.Response(200, content=b'{"refinedText": "\xff\xfe bad"}')
        )

        with pytest.raises(AIServiceError, match="invalid JSON"):
            await client.refine(refine_request())
