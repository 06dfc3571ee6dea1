"""
City Guide - Centralized Configuration
=======================================
Uses ``pydantic-settings`` (``BaseSettings``) to load *all* configuration
from environment variables and the package-level ``.env`` file.

Security
--------
- ``GOOGLE_API_KEY`` is typed as ``SecretStr`` and has **no default value**.
  It is also accepted under the name ``GEMINI_API_KEY``.  If neither is
  set at startup, Pydantic raises a ``ValidationError``.  The raw value is
  never exposed in repr, logs, or tracebacks.

Paths
-----
All filesystem paths are ``Path.resolve()``-d at class level so they
work identically on Windows, WSL, and Linux.

Fallback
--------
``FALLBACK_TOPIC`` is the hard-coded subject used when the PDF index is
unavailable or returns nothing: the web search is run for
``"<topic> <question>"`` and the encyclopedia summary for ``<topic>``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"


class Settings(BaseSettings):
    """
    Application-wide settings.

    Every field is loaded from environment variables (or ``.env``).
    Fields *without* a default are **required**.

    Attributes
    ----------
    GOOGLE_API_KEY : SecretStr
        API key for Google AI Studio (Gemini).  **Required.**
    ENV : Literal["dev", "prod"]
        Environment mode controlling logging verbosity.
    PDF_PATH : Path
        The single document indexed at startup.
    CHUNK_SIZE, CHUNK_OVERLAP : int
        Character splitter parameters.
    SEARCH_RESULTS_LIMIT : int
        Number of nearest chunks used as context.
    WEB_RESULTS_MAX_CHARS : int
        Web search text is sliced to this many characters.
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_RAW_DIR: Path = BASE_DIR / "data" / "raw"
    DATA_PROCESSED_DIR: Path = BASE_DIR / "data" / "processed"
    LANCEDB_PATH: Path = BASE_DIR / "data" / "lancedb"
    STATIC_DIR: Path = BASE_DIR / "static"
    PDF_PATH: Path = DATA_RAW_DIR / "mangalore.pdf"

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"

    # ── API Keys (REQUIRED — no default) ───────────────────────────────
    GOOGLE_API_KEY: SecretStr = Field(validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY"))

    # ── Indexing Parameters ────────────────────────────────────────────
    CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200

    # ── Model Configuration ────────────────────────────────────────────
    EMBEDDING_MODEL: str = "models/gemini-embedding-001"
    LLM_MODEL: str = "gemini-2.0-flash"
    LLM_TEMPERATURE: float = 0.7

    # ── LanceDB ────────────────────────────────────────────────────────
    LANCEDB_TABLE_NAME: str = "city_docs"

    # ── Retrieval ──────────────────────────────────────────────────────
    SEARCH_RESULTS_LIMIT: int = 3

    # ── Web Fallback ───────────────────────────────────────────────────
    FALLBACK_TOPIC: str = "Mangalore"
    WEB_SEARCH_URL: str = "https://www.google.com/search"
    WIKIPEDIA_SUMMARY_URL: str = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"
    WEB_RESULTS_MAX_CHARS: int = 1000
    HTTP_TIMEOUT: float = 10.0
    USER_AGENT: str = _DEFAULT_USER_AGENT

    # ── HTTP Server ────────────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: list[str] = ["*"]

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("CHUNK_SIZE")
    @classmethod
    def _chunk_size_positive(cls, v: int) -> int:
        if v < 100:
            raise ValueError(f"CHUNK_SIZE must be ≥ 100, got {v}")
        return v


    @field_validator("SEARCH_RESULTS_LIMIT")
    @classmethod
    def _results_range(cls, v: int) -> int:
        if not 1 <= v <= 20:
            raise ValueError(f"SEARCH_RESULTS_LIMIT must be 1–20, got {v}")
        return v


    @model_validator(mode="after")
    def _overlap_below_size(self) -> "Settings":
        if not 0 <= self.CHUNK_OVERLAP < self.CHUNK_SIZE:
            raise ValueError(f"CHUNK_OVERLAP must be in [0, CHUNK_SIZE), got {self.CHUNK_OVERLAP}")
        return self

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent / ".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from cityguide.config.settings import settings
settings = Settings()
