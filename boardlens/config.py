from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "postgresql+asyncpg://localhost/boardlens"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert plain postgres:// URLs to asyncpg format."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if v.startswith("postgresql://") and "+asyncpg" not in v:
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    # Database pool
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_recycle: int = 1800  # 30 minutes

    # Unstructured partitioning API
    unstructured_api_url: str = "https://api.unstructuredapp.io"
    unstructured_api_key: str = ""
    unstructured_timeout_seconds: float = 300.0
    pdf_split_concurrency: int = 15
    partition_languages: list[str] = ["eng"]

    # Object storage (Supabase Storage REST API)
    storage_url: str = "http://localhost:54321"
    storage_service_key: str = ""
    storage_bucket: str = "board-documents"
    storage_timeout_seconds: float = 60.0

    # API Keys
    anthropic_api_key: str = ""

    # AI Models
    claude_model: str = "claude-sonnet-4-5-20250929"  # Analysis model
    claude_fast_model: str = "claude-haiku-4-5-20251001"  # Metadata and per-chunk passes
    analysis_max_tokens: int = 8192

    # Chunking (token budgets for text-embedding-3-large)
    chunk_size: int = 7500
    chunk_overlap: int = 200

    # Upload limits
    max_file_size_bytes: int = 50 * 1024 * 1024  # 50MB

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
