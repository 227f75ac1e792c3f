"""
Prompt templates for LinkedIn post generation.

The system instruction carries persona and behavior rules and is sent with
every request. The task block changes wording when a current draft is being
refined so the model keeps the sections it is not told to change.
"""

from draftsmith.models import EmbeddedChunkRecord, GenerationRequest

DEFAULT_PERSONA = "Professional, empathetic, yet authoritative. Insightful and bold."

SYSTEM_INSTRUCTION = """You are a professional LinkedIn content writer and editor.
Your task is to produce clear, engaging, and credible LinkedIn content that maintains a professional tone while remaining readable and compelling.

KNOWLEDGE CORPUS:
- You have been provided with documents. These are your primary sources of inspiration.
- Always prioritize data, quotes, and frameworks found in the attached documents.
- If a document contradicts general knowledge, follow the document's perspective.

PERSONA & TONE:
- Strictly adhere to: "{persona}".

INCREMENTAL UPDATES:
- If a "CURRENT DRAFT" is provided, treat the request as a refinement.
- Improve the existing text based on the "KEY ARGUMENTS / REFINEMENT INSTRUCTIONS".
- Preserve the sections of the original draft that you're not explicitly instructed to change.

URL HANDLING:
- If a URL is provided in the context, use the search tool to browse the page and absorb the content before writing.

OUTPUT FORMAT:
- Use spacing and short paragraphs for readability."""

NEW_TASK = "TASK: Write a new LinkedIn {post_type}."

REFINE_TASK = """TASK: Refine and update the existing LinkedIn {post_type}.
Apply only the requested changes and preserve every section of the current draft that the instructions do not touch.

CURRENT DRAFT TO REFINE:
\"\"\"
{current_draft}
\"\"\""""

CONTEXT_BLOCK = """CONTEXT FOR RESPONSE:
{context}"""

INSTRUCTIONS_BLOCK = """KEY ARGUMENTS / REFINEMENT INSTRUCTIONS:
{instructions}"""

DOCUMENT_BLOCK = """--- DOCUMENT: {name} ---
{text}
"""

CHUNKS_HEADER = "RELEVANT KNOWLEDGE CHUNKS:"

CHUNK_LINE = "[From {document_id}]: {text}"

NO_CONTEXT = "No specific post context provided. Produce a well-reasoned thought leadership post."

NO_INSTRUCTIONS = "Identify a clear, valuable angle using the Knowledge Corpus."


def system_instruction(persona: str) -> str:
    return SYSTEM_INSTRUCTION.format(persona=persona.strip() or DEFAULT_PERSONA)


def task_block(request: GenerationRequest) -> str:
    """Task statement plus the post context; distinguishes fresh and refined posts."""
    if request.is_refinement:
        task = REFINE_TASK.format(
            post_type=request.post_type.value, current_draft=request.current_draft
        )
    else:
        task = NEW_TASK.format(post_type=request.post_type.value)

    context = CONTEXT_BLOCK.format(context=request.context.strip() or NO_CONTEXT)
    return f"{task}\n\n{context}\n"


def instructions_block(request: GenerationRequest) -> str:
    return INSTRUCTIONS_BLOCK.format(
        instructions=request.instructions.strip() or NO_INSTRUCTIONS
    )


def document_block(name: str, text: str) -> str:
    return DOCUMENT_BLOCK.format(name=name, text=text)


def chunks_block(records: list[EmbeddedChunkRecord]) -> str:
    lines = [CHUNKS_HEADER]
    lines.extend(
        CHUNK_LINE.format(document_id=record.document_id, text=record.chunk.text)
        for record in records
    )
    return "\n".join(lines) + "\n"
