"""Embedding and generation provider abstraction with concrete implementations."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
import logging

import google.generativeai as genai
import httpx
from openai import AsyncOpenAI

from tutor.config import Settings

logger = logging.getLogger(__name__)


class LLMProvider(ABC):
    """Base interface for the model providers used by the answer pipeline."""

    name: str = "unknown"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Generate a full completion for the given prompt."""

    @abstractmethod
    async def embed_text(self, text: str) -> list[float]:
        """Create an embedding for retrieval workflows."""

    async def close(self) -> None:
        return None


class GeminiProvider(LLMProvider):
    """Google Gemini provider using the `google-generativeai` client."""

    name = "gemini"

    def __init__(self, api_key: str, model_name: str, embedding_model: str) -> None:
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model_name=model_name)
        self._embedding_model = embedding_model

    async def generate(self, prompt: str) -> str:
        def _sync_generate() -> str:
            response = self._model.generate_content(prompt)
            return getattr(response, "text", "") or ""

        return await asyncio.to_thread(_sync_generate)

    async def embed_text(self, text: str) -> list[float]:
        def _sync_embed() -> list[float]:
            result = genai.embed_content(
                model=self._embedding_model,
                content=text,
                task_type="retrieval_query",
            )
            embedding = result.get("embedding") if isinstance(result, dict) else None
            if not embedding:
                raise ValueError("Gemini embedding response did not include an embedding vector.")
            return [float(value) for value in embedding]

        return await asyncio.to_thread(_sync_embed)


class OpenAIProvider(LLMProvider):
    """OpenAI provider for chat completions and embeddings."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model_name: str,
        embedding_model: str = "text-embedding-3-small",
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model_name = model_name
        self._embedding_model = embedding_model

    async def generate(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._model_name,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.choices[0].message.content or ""

    async def embed_text(self, text: str) -> list[float]:
        result = await self._client.embeddings.create(model=self._embedding_model, input=text)
        return [float(value) for value in result.data[0].embedding]

    async def close(self) -> None:
        await self._client.close()


class OllamaProvider(LLMProvider):
    """Ollama provider using Ollama's local HTTP API."""

    name = "ollama"

    def __init__(
        self,
        endpoint: str,
        model_name: str,
        embedding_model: str = "nomic-embed-text",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=endpoint.rstrip("/"), timeout=120.0)
        self._model_name = model_name
        self._embedding_model = embedding_model

    async def generate(self, prompt: str) -> str:
        payload = {
            "model": self._model_name,
            "prompt": prompt,
            "stream": False,
        }
        response = await self._client.post("/api/generate", json=payload)
        response.raise_for_status()
        return response.json().get("response", "")

    async def embed_text(self, text: str) -> list[float]:
        response = await self._client.post(
            "/api/embeddings",
            json={"model": self._embedding_model, "prompt": text},
        )
        response.raise_for_status()
        vector = response.json().get("embedding")
        if not isinstance(vector, list):
            raise ValueError("Ollama embeddings response did not include an embedding vector.")
        return [float(value) for value in vector]

    async def close(self) -> None:
        await self._client.aclose()


PROVIDER_LABELS = {"openai": "OpenAI", "gemini": "Gemini", "ollama": "Ollama"}


def _build_provider(provider: str, settings: Settings) -> LLMProvider | None:
    if provider == "gemini":
        if not settings.gemini_api_key:
            return None
        return GeminiProvider(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model_name,
            embedding_model=settings.gemini_embedding_model,
        )

    if provider == "openai":
        if not settings.openai_api_key:
            return None
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model_name=settings.openai_model_name,
            embedding_model=settings.openai_embedding_model,
        )

    if provider == "ollama":
        return OllamaProvider(
            endpoint=settings.ollama_endpoint,
            model_name=settings.ollama_model_name,
            embedding_model=settings.ollama_embedding_model,
        )

    raise ValueError(f"Unsupported LLM provider: {provider}")


def build_embedding_provider(settings: Settings) -> LLMProvider | None:
    """Build the embedding provider, or None when its credentials are missing."""
    provider = _build_provider(settings.embedding_provider, settings)
    if provider is None:
        logger.warning("Embedding provider '%s' has no API key configured.", settings.embedding_provider)
    return provider


def build_generation_provider(settings: Settings) -> LLMProvider | None:
    """Build the generation provider, or None when its credentials are missing."""
    provider = _build_provider(settings.generation_provider, settings)
    if provider is None:
        logger.warning("Generation provider '%s' has no API key configured.", settings.generation_provider)
    return provider
