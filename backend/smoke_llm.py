"""Manual provider smoke check for the configured generation backend."""

from __future__ import annotations

import asyncio

from tutor.config import get_settings
from tutor.services.grounding import build_prompt
from tutor.services.llm_service import build_generation_provider

SAMPLE_MATERIAL = """
[1] A binary search tree stores keys so that every key in a node's left subtree
is smaller than the node's key and every key in its right subtree is larger.
""".strip()


async def main() -> None:
    settings = get_settings()
    provider = build_generation_provider(settings)
    if provider is None:
        raise SystemExit(f"{settings.generation_provider} credentials are not configured.")
    prompt = build_prompt("Data Structures", SAMPLE_MATERIAL, "What is a binary search tree?")
    result = await provider.generate(prompt)
    print(result.strip())


if __name__ == "__main__":
    asyncio.run(main())
