"""Application configuration loaded from environment variables."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    openai_api_key: Optional[str] = Field(
        default=None, description="Secret key for OpenAI APIs."
    )
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_chat: str = "gpt-4o"
    max_output_tokens: int = 800

    max_text_length: int = 50_000
    max_context_length: int = 15_000
    max_search_results: int = 5
    max_doc_preview_length: int = 3_000
    max_summary_length: int = 500
    summary_max_words: int = 200
    pdf_cache_ttl_seconds: float = 30 * 60
    citation_style: Literal["inline", "footnote", "bracket"] = "bracket"

    store_backend: Literal["memory", "jsonl"] = "memory"
    documents_dir: str = "data/documents"

    log_level: str = "INFO"
    allow_tiktoken_fallback: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def documents_dir_path(self) -> Path:
        return Path(self.documents_dir)


settings = Settings()
