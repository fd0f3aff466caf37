"""Shared test fixtures for all test modules."""

import pytest

from onepager.models.block import TITLE_BLOCK_ID, Block, Document
from onepager.models.ai_payloads import (
    GenerationRequest,
    GenerationResponse,
    RefineRequest,
    RefineResponse,
)


def make_document(title: str = "Mobile App Redesign Proposal", doc_id: str | None = "doc-1") -> Document:
    """Document with a title block and three content blocks with fixed ids."""
    return Document(
        id=doc_id,
        blocks=[
            Block(id=TITLE_BLOCK_ID, title=title),
            Block(id="problem", title="Problem Statement",
                  content="Our app has a cluttered interface."),
            Block(id="solution", title="Proposed Solution",
                  content="Redesign the navigation."),
            Block(id="risks", title="Key Risks", content=""),
        ],
    )


class FakeTransport:
    """In-memory AITransport recording the requests it receives."""

    def __init__(self, refine_response=None, generation_response=None, error=None):
        self.refine_response = refine_response or RefineResponse(refined_text="Refined text.")
        self.generation_response = generation_response
        self.error = error
        self.refine_requests: list[RefineRequest] = []
        self.generation_requests: list[GenerationRequest] = []

    async def refine(self, request: RefineRequest) -> RefineResponse:
        self.refine_requests.append(request)
        if self.error is not None:
            raise self.error
        return self.refine_response

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.generation_requests.append(request)
        if self.error is not None:
            raise self.error
        return self.generation_response


@pytest.fixture
def document():
    return make_document()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def document_factory():
    return make_document


@pytest.fixture
def transport_factory():
    return FakeTransport
