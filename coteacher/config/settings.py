"""Application settings loaded from environment variables via pydantic-settings.

Values come from two sources, in priority order:

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. The ``.env`` file in the working directory (local development)

Field names map to upper-cased variable names automatically
(``supabase_url`` <- ``SUPABASE_URL``).  Defaults apply when neither
source sets a field.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CoTeacher application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === OpenAI ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (Azure proxy, TogetherAI, ...)
    openai_text_model: str = "gpt-4o-mini"
    # Indexing and querying must share this model or similarity is meaningless.
    openai_embedding_model: str = "text-embedding-3-small"
    openai_transcription_model: str = "whisper-1"
    openai_timeout_seconds: float = 60.0

    # === Supabase ===
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # === Backends ===
    storage_backend: str = "supabase"  # "supabase" | "local"
    local_storage_dir: str = "./data/storage"
    store_backend: str = "supabase"  # "supabase" | "sqlite"
    sqlite_db_path: str = "data/coteacher.db"

    # === Buckets ===
    materials_bucket: str = "course-materials"
    recordings_bucket: str = "class_recordings"
    signed_url_ttl_seconds: int = 60

    # === Ingestion ===
    chunk_size: int = 1200
    chunk_overlap: int = 200
    embed_item_token_limit: int = 8000
    embed_request_token_budget: int = 250_000
    embed_request_max_items: int = 2048

    # === Course chat ===
    chat_top_k: int = 6
    chat_match_threshold: float = 0.2
    chat_temperature: float = 0.3

    # === Lecture notes ===
    notes_temperature: float = 0.7

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    def uses_supabase(self) -> bool:
        """Return ``True`` if any backend talks to Supabase."""
        return "supabase" in (self.storage_backend.lower(), self.store_backend.lower())
