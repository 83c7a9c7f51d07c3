"""Application settings loaded from environment variables via pydantic-settings.

Two sources are read, environment variables first and then a local ``.env``
file.  Field ``openai_api_key`` maps to ``OPENAI_API_KEY`` and so on.
Defaults apply when neither source sets a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Knowledge-base settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding ===
    # "openai" (hosted or OpenAI-compatible) or "ollama" (local; "nomic" is an alias).
    embedding_provider: str = "openai"
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    openai_embedding_model: str = "text-embedding-ada-002"
    ollama_base_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "nomic-embed-text"
    embedding_dimension: int = 1536
    embedding_batch_size: int = 100
    embedding_timeout_seconds: float = 30.0

    # === Fetching ===
    fetch_timeout_seconds: float = 15.0
    site_base_url: str = "http://localhost:3000"
    site_name: str = "Site"
    sitemap_path: str = ""  # local file or URL; defaults to <site_base_url>/sitemap.xml

    # === Chunking ===
    chunk_max_size: int = 1000
    chunk_overlap: int = 100
    chunk_respect_paragraphs: bool = True

    # === Search ===
    search_default_top_k: int = 5
    search_client_top_k: int = 3
    search_keyword_bonus: float = 0.2

    # === Storage ===
    knowledge_db_path: str = "data/knowledge.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def resolved_sitemap(self) -> str:
        """Return the sitemap location, defaulting to the site's sitemap.xml."""
        if self.sitemap_path:
            return self.sitemap_path
        return f"{self.site_base_url.rstrip('/')}/sitemap.xml"
