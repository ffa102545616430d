"""Context assembly, tutor prompt, and citation formatting."""

from __future__ import annotations

from collections.abc import Sequence

from tutor.models.schemas import Chunk, Source

CONTEXT_DELIMITER = "\n\n---\n\n"

FALLBACK_ANSWER = (
    "I don't have information about this in the course materials. "
    "This topic might not be covered yet, or try rephrasing your question."
)

PROMPT_TEMPLATE = """You are a helpful tutor for students studying {course_name}.

CRITICAL RULES:
1. Answer ONLY using the course materials provided below
2. If the materials don't contain the answer, say: "I don't have information about this in the course materials"
3. NEVER make up information
4. Cite which source you're using: [1], [2], etc.
5. Keep explanations clear and student-friendly
6. If asked about exams, remind students to check with their lecturer

Course materials:
{context}

Student question: {question}

Provide a clear, helpful answer based ONLY on the materials above. Cite your sources."""


def assemble_context(chunks: Sequence[Chunk]) -> str:
    """Number chunks from 1 so citations in the answer map back to sources."""
    return CONTEXT_DELIMITER.join(
        f"[{index}] {chunk.text}" for index, chunk in enumerate(chunks, start=1)
    )


def build_prompt(course_name: str, context: str, question: str) -> str:
    # str.format does not re-scan substituted values, so braces in the
    # question or materials pass through untouched.
    return PROMPT_TEMPLATE.format(course_name=course_name, context=context, question=question)


def format_sources(chunks: Sequence[Chunk], preview_chars: int = 150) -> list[Source]:
    return [
        Source(
            index=index,
            preview=chunk.text[:preview_chars] + "...",
            page=chunk.page_number,
            similarity=chunk.similarity,
        )
        for index, chunk in enumerate(chunks, start=1)
    ]
