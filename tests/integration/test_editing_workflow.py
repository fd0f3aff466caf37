"""Integration tests for a full editing session (load -> generate -> refine -> save)."""

import asyncio
import json

import httpx
import pytest

from onepager.editor.actions import SUMMARIZE_ACTION
from onepager.editor.session import EditorSession
from onepager.models.config import AIServiceConfig, EditorConfig
from onepager.models.richtext import bullet_list, flatten
from onepager.services.ai_client import AIServiceClient
from onepager.services.document_store import JsonFileStore


LONG_TEXT = (
    "Users abandon the app because core features are buried three menus deep. "
    "Support tickets about navigation doubled last quarter, and reviews mention it constantly."
)


class FakeService:
    """Stand-in for the hosted functions, served through httpx.MockTransport."""

    def __init__(self):
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        path = request.url.path.rsplit("/", 1)[-1]
        self.calls.append((path, body))

        if path == "generate-one-pager":
            return httpx.Response(200, json={"generatedOnePager": {"fields": [
                {"label": "Problem Statement", "value": "Navigation is confusing."},
                {"label": "Proposed Solution", "value": "A tab bar. Get started today."},
                {"label": "Potential Risks", "value": "Retraining existing users."},
            ]}})

        if body["specificAction"] == SUMMARIZE_ACTION:
            return httpx.Response(200, json={"items": ["Features are buried", "Tickets doubled"]})
        return httpx.Response(200, json={"refinedText": LONG_TEXT})


@pytest.fixture
def service():
    return FakeService()


@pytest.fixture
def client(service):
    config = AIServiceConfig(endpoint="https://project.functions.test/v1", api_key="key")
    return AIServiceClient(config, retry_delay=0, transport=httpx.MockTransport(service))


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(tmp_path / "documents.json")


@pytest.mark.asyncio
async def test_generate_refine_follow_up_and_save(store, client, service):
    config = EditorConfig(save_delay=0.05)
    session = await EditorSession.open(store, "alice", transport=client, config=config)

    # Title, then generate the sections
    session.model.update_field("title", "title", "Mobile App Navigation Overhaul")
    await session.coordinator.generate()
    problem = session.document.content_blocks[0]
    assert problem.title == "Problem Statement"
    assert not any(f.id == "no-risks-section" for f in session.findings)

    # Refine: the suggestion is visible but not stored
    await session.coordinator.refine(problem.id, "Expand on Impact")
    assert flatten(session.display_value(problem.id, "content")) == LONG_TEXT
    assert flatten(session.model.get(problem.id).content) == "Navigation is confusing."

    refine_body = service.calls[-1][1]
    assert refine_body["targetField"] == {"label": "Problem Statement", "value": "Navigation is confusing."}
    assert refine_body["documentContext"]["title"] == "Mobile App Navigation Overhaul"

    # Accepting long content arms the summarize offer
    session.review.accept(problem.id)
    assert session.review.follow_up(problem.id).action == SUMMARIZE_ACTION

    await session.coordinator.run_follow_up(problem.id)
    session.review.accept(problem.id)
    assert session.model.get(problem.id).content == bullet_list(["Features are buried", "Tickets doubled"])

    await asyncio.sleep(0.2)
    assert not session.scheduler.pending
    await session.close()

    reopened = await EditorSession.open(store, "alice", config=config)
    assert reopened.document.title == "Mobile App Navigation Overhaul"
    assert [b.title for b in reopened.document.content_blocks] == [
        "Problem Statement", "Proposed Solution", "Potential Risks",
    ]
    assert reopened.model.get(problem.id).content == bullet_list(["Features are buried", "Tickets doubled"])
    assert reopened.findings == session.findings


@pytest.mark.asyncio
async def test_structural_edits_persist_in_order(store):
    session = await EditorSession.open(store, "bob", config=EditorConfig(save_delay=0.05))
    first, second = [b.id for b in session.document.content_blocks]

    added = session.model.insert_after(first, title="Key Risks")
    session.model.update_field(added.id, "content", "Scope creep.")
    session.model.reorder(second, first)
    assert not session.model.delete("title")
    await session.close()

    reopened = await EditorSession.open(store, "bob")
    assert [b.id for b in reopened.document.content_blocks] == [second, first, added.id]
    assert flatten(reopened.model.get(added.id).content) == "Scope creep."
    assert not any(f.id == "empty-risks-section" for f in reopened.findings)


@pytest.mark.asyncio
async def test_service_error_leaves_stored_document_untouched(store):
    def failing(request):
        return httpx.Response(500, json={"error": "AI service is not configured."})

    client = AIServiceClient(
        AIServiceConfig(endpoint="https://project.functions.test/v1", api_key="key"),
        transport=httpx.MockTransport(failing),
    )
    session = await EditorSession.open(store, "carol", transport=client)
    block_id = session.document.content_blocks[0].id
    before = session.document.model_copy(deep=True)

    assert await session.coordinator.refine(block_id, "Improve Writing") is None
    await session.close()

    assert session.review.last_task(block_id).error_message == "AI service is not configured. (HTTP 500)"
    assert session.document == before
    assert not session.scheduler.pending
