from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tutor.config import Settings
from tutor.services.llm_service import (
    OllamaProvider,
    OpenAIProvider,
    build_embedding_provider,
    build_generation_provider,
)


def test_builders_return_none_without_credentials() -> None:
    settings = Settings(_env_file=None, openai_api_key=None, gemini_api_key=None)

    assert build_embedding_provider(settings) is None
    assert build_generation_provider(settings) is None


def test_builders_select_configured_providers() -> None:
    settings = Settings(
        _env_file=None,
        openai_api_key="sk-test",
        gemini_api_key=None,
        generation_provider="ollama",
    )

    assert isinstance(build_embedding_provider(settings), OpenAIProvider)
    assert isinstance(build_generation_provider(settings), OllamaProvider)


@pytest.mark.asyncio
async def test_openai_provider_embeds_and_generates() -> None:
    client = MagicMock()
    client.embeddings.create = AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(embedding=[1, 0.5])])
    )
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Grounded answer [1]."))]
        )
    )
    provider = OpenAIProvider(api_key="sk-test", model_name="gpt-4o-mini", client=client)

    assert await provider.embed_text("What is a BST?") == [1.0, 0.5]
    assert await provider.generate("prompt") == "Grounded answer [1]."
    client.embeddings.create.assert_awaited_once_with(
        model="text-embedding-3-small", input="What is a BST?"
    )
    assert client.chat.completions.create.call_args.kwargs["messages"] == [
        {"role": "user", "content": "prompt"}
    ]


def test_ollama_embeddings_use_the_embedding_model_setting() -> None:
    settings = Settings(
        _env_file=None,
        embedding_provider="ollama",
        ollama_model_name="llama3.1",
        ollama_embedding_model="mxbai-embed-large",
    )

    provider = build_embedding_provider(settings)

    assert isinstance(provider, OllamaProvider)
    assert provider._embedding_model == "mxbai-embed-large"
    assert provider._model_name == "llama3.1"


@pytest.mark.asyncio
async def test_ollama_provider_embeds_with_embedding_model_and_closes_client() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"embedding": [0.25, 1]})

    client = httpx.AsyncClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    provider = OllamaProvider(
        endpoint="http://ollama.test",
        model_name="llama3.1",
        embedding_model="nomic-embed-text",
        client=client,
    )

    assert await provider.embed_text("What is a BST?") == [0.25, 1.0]
    assert requests[0].url.path == "/api/embeddings"
    assert json.loads(requests[0].content) == {"model": "nomic-embed-text", "prompt": "What is a BST?"}

    await provider.close()
    assert client.is_closed


@pytest.mark.asyncio
async def test_openai_provider_close_releases_client() -> None:
    client = MagicMock()
    client.close = AsyncMock()
    provider = OpenAIProvider(api_key="sk-test", model_name="gpt-4o-mini", client=client)

    await provider.close()

    client.close.assert_awaited_once()
