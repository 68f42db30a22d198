"""Runtime settings for the SoulMap backend.

Every value comes from an environment variable (or the project `.env`, read
once at import) and falls back to a local-first default: Ollama for both
models, a SQLite file under ``~/.soulmap_data``, and a fixed placeholder
user id until authentication exists.

Tests override single fields in place, e.g.
``monkeypatch.setattr("soulmap.config.settings.workspace_dir", tmp_path)``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("SOULMAP_WORKSPACE", Path.home() / ".soulmap_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "journal.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Embedding model
    # ------------------------------------------------------------------
    embedding_provider: str = field(
        default_factory=lambda: os.environ.get("EMBEDDING_PROVIDER", "ollama")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ollama_embed_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_EMBED_MODEL", "embeddinggemma:latest")
    )
    openai_embed_model: str = field(
        default_factory=lambda: os.environ.get(
            "OPENAI_EMBED_MODEL", "text-embedding-3-small"
        )
    )
    voyage_embed_model: str = field(
        default_factory=lambda: os.environ.get("VOYAGE_EMBED_MODEL", "voyage-3-large")
    )
    embedding_dim: int = field(
        default_factory=lambda: int(os.environ.get("EMBEDDING_DIM", "768"))
    )

    # ------------------------------------------------------------------
    # Chat / extraction model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "ollama")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Graph merge
    # ------------------------------------------------------------------
    weight_strategy: str = field(
        default_factory=lambda: os.environ.get("WEIGHT_STRATEGY", "latest")
    )
    weight_decay_alpha: float = field(
        default_factory=lambda: float(os.environ.get("WEIGHT_DECAY_ALPHA", "0.5"))
    )

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------
    # Placeholder owner until authentication exists.
    default_user_id: str = field(
        default_factory=lambda: os.environ.get(
            "DEFAULT_USER_ID", "123e4567-e89b-12d3-a456-426614174000"
        )
    )
    max_page_size: int = field(
        default_factory=lambda: int(os.environ.get("MAX_PAGE_SIZE", "200"))
    )
    created_via: str = field(
        default_factory=lambda: os.environ.get("CREATED_VIA", "web_app")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    @property
    def embed_model_name(self) -> str:
        """Model name recorded in entry metadata for the active provider."""
        return {
            "openai": self.openai_embed_model,
            "voyage": self.voyage_embed_model,
        }.get(self.embedding_provider, self.ollama_embed_model)


# Module-level instance; import this everywhere:
#   from soulmap.config import settings
settings = Settings()
