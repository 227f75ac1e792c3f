"""Unit tests for grounding.assembler module."""

import pytest

from draftsmith.exceptions import DocumentNotIndexedError, TransientError
from draftsmith.grounding.assembler import (
    NO_RESPONSE_TEXT,
    GroundingAssembler,
    normalize_result,
)
from draftsmith.models import (
    Document,
    GenerationRequest,
    GenerationResult,
    KnowledgeMode,
    Source,
    Vendor,
)

from conftest import FakeProvider, letter_vector, make_record


def _document(doc_id: str, text: str = "", **kwargs) -> Document:
    return Document(id=doc_id, name=f"{doc_id}.txt", mime_type="text/plain", text=text, **kwargs)


async def _index(store, document: Document, texts: list[str], vendor=Vendor.OPENAI):
    records = [
        make_record(document.id, i, letter_vector(text), vendor=vendor, text=text)
        for i, text in enumerate(texts)
    ]
    await store.replace_document(document.id, vendor, records)
    document.indexed_vendors.add(vendor)


@pytest.mark.unit
class TestAssemble:
    """Tests for GroundingAssembler.assemble."""

    @pytest.mark.asyncio
    async def test_fresh_request_part_order(self, fake_provider, memory_store, sample_request):
        """Task, context documents and instructions appear in order."""
        docs = [_document("brief", "Our brand voice guide")]
        assembler = GroundingAssembler(fake_provider, memory_store)

        material = await assembler.assemble("key", sample_request, docs)

        texts = [part.text for part in material.parts]
        assert texts[0].startswith("TASK: Write a new LinkedIn")
        assert texts[1] == "--- DOCUMENT: brief.txt ---\nOur brand voice guide\n"
        assert texts[-1].startswith("KEY ARGUMENTS / REFINEMENT INSTRUCTIONS:")
        assert "Friendly founder" in material.system_instruction
        assert material.retrieved == []

    @pytest.mark.asyncio
    async def test_refinement_wording_differs(self, fake_provider, memory_store):
        request = GenerationRequest(
            model="gpt-4o", instructions="Shorter intro", current_draft="Draft body"
        )
        assembler = GroundingAssembler(fake_provider, memory_store)

        material = await assembler.assemble("key", request, [])

        assert "Refine and update the existing LinkedIn" in material.user_prompt
        assert "Draft body" in material.user_prompt

    @pytest.mark.asyncio
    async def test_inactive_documents_excluded(self, fake_provider, memory_store, sample_request):
        docs = [
            _document("on", "visible text"),
            _document("off", "hidden text", active=False),
        ]
        assembler = GroundingAssembler(fake_provider, memory_store)

        material = await assembler.assemble("key", sample_request, docs)

        assert "visible text" in material.user_prompt
        assert "hidden text" not in material.user_prompt

    @pytest.mark.asyncio
    async def test_binary_context_document_inlined(self, fake_provider, memory_store, sample_request):
        image = Document(id="img", name="chart.png", mime_type="image/png", data=b"\x89PNG")
        assembler = GroundingAssembler(fake_provider, memory_store)

        material = await assembler.assemble("key", sample_request, [image])

        inline = [part for part in material.parts if part.is_inline_data]
        assert len(inline) == 1
        assert inline[0].data == b"\x89PNG"
        assert inline[0].mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_rag_retrieves_matching_chunks(self, fake_provider, memory_store):
        doc = _document("kb", knowledge_mode=KnowledgeMode.RAG)
        await _index(
            memory_store,
            doc,
            ["pricing strategy for startups", "zzz qqq xxx", "hiring senior engineers"],
        )
        request = GenerationRequest(model="gpt-4o", instructions="pricing strategy for startups")
        assembler = GroundingAssembler(fake_provider, memory_store, top_k=1)

        material = await assembler.assemble("key", request, [doc])

        assert [r.chunk.text for r, _ in material.retrieved] == ["pricing strategy for startups"]
        assert "[From kb]: pricing strategy for startups" in material.user_prompt
        assert "hiring senior engineers" not in material.user_prompt
        assert fake_provider.embed_calls == [["pricing strategy for startups"]]

    @pytest.mark.asyncio
    async def test_chunks_block_before_instructions(self, fake_provider, memory_store):
        context_doc = _document("ctx", "context body")
        rag_doc = _document("kb", knowledge_mode=KnowledgeMode.RAG)
        await _index(memory_store, rag_doc, ["growth tactics"])
        request = GenerationRequest(model="gpt-4o", instructions="growth")
        assembler = GroundingAssembler(fake_provider, memory_store)

        material = await assembler.assemble("key", request, [context_doc, rag_doc])

        texts = [part.text for part in material.parts]
        assert texts[1].startswith("--- DOCUMENT: ctx.txt ---")
        assert texts[2].startswith("RELEVANT KNOWLEDGE CHUNKS:")
        assert texts[3].startswith("KEY ARGUMENTS / REFINEMENT INSTRUCTIONS:")

    @pytest.mark.asyncio
    async def test_context_used_when_instructions_blank(self, fake_provider, memory_store):
        doc = _document("kb", knowledge_mode=KnowledgeMode.RAG)
        await _index(memory_store, doc, ["anything"])
        request = GenerationRequest(model="gpt-4o", context="fallback query")
        assembler = GroundingAssembler(fake_provider, memory_store)

        await assembler.assemble("key", request, [doc])

        assert fake_provider.embed_calls == [["fallback query"]]

    @pytest.mark.asyncio
    async def test_blank_query_skips_retrieval(self, fake_provider, memory_store):
        doc = _document("kb", knowledge_mode=KnowledgeMode.RAG)
        await _index(memory_store, doc, ["anything"])
        assembler = GroundingAssembler(fake_provider, memory_store)

        material = await assembler.assemble("key", GenerationRequest(model="gpt-4o"), [doc])

        assert fake_provider.embed_calls == []
        assert material.retrieved == []

    @pytest.mark.asyncio
    async def test_retrieval_ignores_inactive_and_context_documents(
        self, fake_provider, memory_store
    ):
        """Stored chunks of documents not active in RAG mode are never retrieved."""
        active_rag = _document("rag", knowledge_mode=KnowledgeMode.RAG)
        inactive_rag = _document("old", knowledge_mode=KnowledgeMode.RAG, active=False)
        back_to_context = _document("ctx", "full text")
        await _index(memory_store, active_rag, ["alpha beta"])
        await _index(memory_store, inactive_rag, ["alpha beta gamma"])
        await _index(memory_store, back_to_context, ["alpha beta"])
        request = GenerationRequest(model="gpt-4o", instructions="alpha beta")
        assembler = GroundingAssembler(fake_provider, memory_store, top_k=5)

        material = await assembler.assemble(
            "key", request, [active_rag, inactive_rag, back_to_context]
        )

        assert {r.document_id for r, _ in material.retrieved} == {"rag"}

    @pytest.mark.asyncio
    async def test_unindexed_rag_document_raises(self, fake_provider, memory_store, sample_request):
        doc = _document("kb", "text", knowledge_mode=KnowledgeMode.RAG)

        with pytest.raises(DocumentNotIndexedError) as exc_info:
            await GroundingAssembler(fake_provider, memory_store).assemble(
                "key", sample_request, [doc]
            )

        assert exc_info.value.document_id == "kb"
        assert fake_provider.embed_calls == []

    @pytest.mark.asyncio
    async def test_indexed_for_other_vendor_raises(self, google_fake_provider, memory_store, sample_request):
        """Embedding spaces are per vendor; an OpenAI index does not serve Gemini."""
        doc = _document("kb", knowledge_mode=KnowledgeMode.RAG)
        await _index(memory_store, doc, ["text"], vendor=Vendor.OPENAI)

        with pytest.raises(DocumentNotIndexedError) as exc_info:
            await GroundingAssembler(google_fake_provider, memory_store).assemble(
                "key", sample_request, [doc]
            )

        assert exc_info.value.vendor == "google"

    @pytest.mark.asyncio
    async def test_embed_failure_names_vendor_and_operation(self, memory_store, sample_request):
        provider = FakeProvider(
            embed_error=TransientError("rate limited", vendor="openai", operation="embed")
        )
        doc = _document("kb", knowledge_mode=KnowledgeMode.RAG)
        await _index(memory_store, doc, ["text"])

        with pytest.raises(TransientError) as exc_info:
            await GroundingAssembler(provider, memory_store).generate("key", sample_request, [doc])

        assert exc_info.value.vendor == "openai"
        assert exc_info.value.operation == "embed"
        assert provider.generate_calls == []


@pytest.mark.unit
class TestGenerate:
    """Tests for GroundingAssembler.generate."""

    @pytest.mark.asyncio
    async def test_dispatches_assembled_material(self, fake_provider, memory_store, sample_request):
        result = await GroundingAssembler(fake_provider, memory_store).generate(
            "key", sample_request, []
        )

        assert result.text == "Generated post"
        ((request, material),) = fake_provider.generate_calls
        assert request is sample_request
        assert material.parts[0].text.startswith("TASK:")
        assert fake_provider.credentials == ["key"]

    @pytest.mark.asyncio
    async def test_empty_output_becomes_marker(self, memory_store, sample_request):
        provider = FakeProvider(result=GenerationResult(text=""))

        result = await GroundingAssembler(provider, memory_store).generate(
            "key", sample_request, []
        )

        assert result.text == NO_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_generation_failure_propagates(self, memory_store, sample_request):
        provider = FakeProvider(
            generate_error=TransientError("overloaded", vendor="openai", operation="generate")
        )

        with pytest.raises(TransientError, match="openai generate failed"):
            await GroundingAssembler(provider, memory_store).generate("key", sample_request, [])


@pytest.mark.unit
class TestNormalizeResult:
    """Tests for normalize_result."""

    def test_none_becomes_marker(self):
        assert normalize_result(None).text == NO_RESPONSE_TEXT

    def test_whitespace_becomes_marker(self):
        assert normalize_result(GenerationResult(text="  \n")).text == NO_RESPONSE_TEXT

    def test_text_kept_verbatim(self):
        assert normalize_result(GenerationResult(text=" Post ")).text == " Post "

    def test_sources_deduplicated_by_uri(self):
        result = GenerationResult(
            text="ok",
            sources=[
                Source(title="First", uri="https://a.test"),
                Source(title="Other", uri="https://b.test"),
                Source(title="Duplicate", uri="https://a.test"),
            ],
        )

        normalized = normalize_result(result)

        assert normalized.sources == [
            Source(title="First", uri="https://a.test"),
            Source(title="Other", uri="https://b.test"),
        ]
