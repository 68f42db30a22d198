"""Text embedder for journal entries and search queries.

Embedding providers
-------------------
``ollama`` (default)
    Calls the local Ollama REST API at ``/api/embeddings``.
    Configure via ``OLLAMA_BASE_URL`` and ``OLLAMA_EMBED_MODEL``.

``openai``
    Calls the OpenAI embeddings API.
    Requires ``OPENAI_API_KEY`` to be set.
    Configure via ``OPENAI_EMBED_MODEL``.

``voyage``
    Calls the Voyage AI embeddings API.
    Requires ``VOYAGE_API_KEY`` to be set.
    Configure via ``VOYAGE_EMBED_MODEL``.

Set ``EMBEDDING_PROVIDER`` in your ``.env`` to switch providers.  Calls are
not retried; a failure surfaces to the caller immediately.
"""

from __future__ import annotations

import os
from typing import Any

import httpx

from soulmap.config import settings
from soulmap.errors import EmbeddingError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_key(name: str) -> str:
    api_key = os.environ.get(name, "")
    if not api_key:
        raise EnvironmentError(
            f"{name} environment variable is not set. "
            "Set it or switch to EMBEDDING_PROVIDER=ollama."
        )
    return api_key


def _first_embedding(payload: dict[str, Any]) -> list[float]:
    """Pull ``data[0].embedding`` out of an OpenAI-style response."""
    data = payload.get("data") or []
    embedding = data[0].get("embedding") if data else None
    if not embedding:
        raise EmbeddingError("No embedding returned from the embedding API")
    return embedding


# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------

def _embed_ollama(text: str) -> list[float]:
    """Call Ollama ``/api/embeddings`` and return the embedding vector."""
    with httpx.Client(timeout=settings.request_timeout) as client:
        response = client.post(
            f"{settings.ollama_base_url}/api/embeddings",
            json={"model": settings.ollama_embed_model, "prompt": text},
        )
        response.raise_for_status()
        embedding = response.json().get("embedding")
    if not embedding:
        raise EmbeddingError("No embedding returned from Ollama")
    return embedding


def _embed_openai(text: str) -> list[float]:
    """Call the OpenAI embeddings API and return the embedding vector."""
    api_key = _require_key("OPENAI_API_KEY")
    with httpx.Client(timeout=settings.request_timeout) as client:
        response = client.post(
            "https://api.openai.com/v1/embeddings",
            headers={"Authorization": f"Bearer {api_key}"},
            json={"model": settings.openai_embed_model, "input": text},
        )
        response.raise_for_status()
        return _first_embedding(response.json())


def _embed_voyage(text: str) -> list[float]:
    """Call the Voyage AI embeddings API and return the embedding vector."""
    api_key = _require_key("VOYAGE_API_KEY")
    with httpx.Client(timeout=settings.request_timeout) as client:
        response = client.post(
            "https://api.voyageai.com/v1/embeddings",
            headers={"Authorization": f"Bearer {api_key}"},
            json={"model": settings.voyage_embed_model, "input": [text]},
        )
        response.raise_for_status()
        return _first_embedding(response.json())


_PROVIDERS = {
    "ollama": _embed_ollama,
    "openai": _embed_openai,
    "voyage": _embed_voyage,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def embed_text(text: str) -> list[float]:
    """Return an embedding vector for *text*.

    The active provider is determined by ``settings.embedding_provider``;
    unknown values fall back to Ollama.

    Raises:
        httpx.HTTPStatusError: If the embedding API returns a non-2xx status.
        EmbeddingError: If the response carries no embedding.
        EnvironmentError: If the provider's API key is missing.
    """
    provider = _PROVIDERS.get(settings.embedding_provider, _embed_ollama)
    return provider(text)
