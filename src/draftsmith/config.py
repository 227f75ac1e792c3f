"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use a .env file for local development.

Environment Variables:
    GOOGLE_API_KEY: Gemini API key
    OPENAI_API_KEY: OpenAI API key
    DEFAULT_VENDOR: Vendor used when none is given (google | openai)
    CHUNK_SIZE: Character window size for RAG chunks
    CHUNK_OVERLAP: Overlap between consecutive chunks
    RETRIEVAL_TOP_K: Number of chunks retrieved per generation
    VECTOR_STORE_PATH: Path to the SQLite embedding store
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from draftsmith.models import Vendor


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Credentials
    # ==========================================================================
    google_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Google Gemini API key",
    )
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        description="OpenAI API key",
    )

    # ==========================================================================
    # Vendor Configuration
    # ==========================================================================
    default_vendor: Vendor = Field(
        default=Vendor.GOOGLE,
        description="Vendor used when none is selected explicitly",
    )
    google_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API root",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI REST API root",
    )
    google_model: str = Field(
        default="gemini-2.5-flash",
        description="Default Gemini generation model",
    )
    openai_model: str = Field(
        default="gpt-4o",
        description="Default OpenAI generation model",
    )
    google_embedding_model: str = Field(
        default="text-embedding-004",
        description="Gemini embedding model",
    )
    openai_embedding_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model",
    )
    google_embed_batch_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Maximum texts per batchEmbedContents call",
    )
    openai_embed_batch_size: int = Field(
        default=2048,
        ge=1,
        le=2048,
        description="Maximum inputs per embeddings call",
    )

    # ==========================================================================
    # Generation Configuration
    # ==========================================================================
    temperature: float = Field(
        default=0.8,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for post generation",
    )
    gemini_thinking_budget: Optional[int] = Field(
        default=0,
        ge=0,
        description="Gemini thinking budget (None leaves the model default)",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0,
        description="HTTP timeout in seconds for vendor calls",
    )

    # ==========================================================================
    # Chunking Configuration
    # ==========================================================================
    chunk_size: int = Field(
        default=1000,
        ge=1,
        description="Window size in characters for RAG chunks",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Overlap in characters between consecutive chunks",
    )

    # ==========================================================================
    # Retrieval Configuration
    # ==========================================================================
    retrieval_top_k: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of chunks retrieved per generation",
    )
    vector_store_path: Path = Field(
        default=Path("data/draftsmith.sqlite3"),
        description="SQLite file holding embedded chunk records",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind API server",
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for API server",
    )

    # ==========================================================================
    # Observability Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int, info) -> int:
        """Ensure overlap is less than chunk size."""
        chunk_size = info.data.get("chunk_size", 1000)
        if v >= chunk_size:
            raise ValueError(f"chunk_overlap ({v}) must be less than chunk_size ({chunk_size})")
        return v

    @field_validator("vector_store_path")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        """Resolve paths to absolute paths."""
        return v.resolve()

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def google_api_key_value(self) -> Optional[str]:
        """Get the actual Gemini key value (use sparingly)."""
        if self.google_api_key:
            return self.google_api_key.get_secret_value()
        return None

    @property
    def openai_api_key_value(self) -> Optional[str]:
        """Get the actual OpenAI key value (use sparingly)."""
        if self.openai_api_key:
            return self.openai_api_key.get_secret_value()
        return None

    def credential_for(self, vendor: Vendor) -> Optional[str]:
        """Return the configured credential for a vendor, if any."""
        if vendor is Vendor.GOOGLE:
            return self.google_api_key_value
        return self.openai_api_key_value

    def default_model_for(self, vendor: Vendor) -> str:
        """Return the default generation model for a vendor."""
        if vendor is Vendor.GOOGLE:
            return self.google_model
        return self.openai_model


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
