"""
Unit tests for configuration module.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from draftsmith.models import Vendor


class TestSettings:
    """Tests for Settings class."""

    def test_settings_loads_from_env(self, mock_settings):
        """Settings should load values from environment variables."""
        assert mock_settings.default_vendor is Vendor.OPENAI
        assert mock_settings.chunk_size == 100
        assert mock_settings.chunk_overlap == 20
        assert mock_settings.retrieval_top_k == 3

    def test_settings_defaults(self):
        """Defaults match the documented retrieval constants."""
        with patch.dict(os.environ, {}, clear=True):
            from draftsmith.config import Settings

            config = Settings(_env_file=None)

        assert config.chunk_size == 1000
        assert config.chunk_overlap == 200
        assert config.retrieval_top_k == 5
        assert config.default_vendor is Vendor.GOOGLE
        assert config.google_api_key is None

    def test_settings_chunk_overlap_validation(self):
        """Chunk overlap must be less than chunk size."""
        with patch.dict(
            os.environ,
            {
                "CHUNK_SIZE": "256",
                "CHUNK_OVERLAP": "300",  # Invalid: > chunk_size
            },
            clear=True,
        ):
            from draftsmith.config import Settings

            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_settings_rejects_unknown_vendor(self):
        with patch.dict(os.environ, {"DEFAULT_VENDOR": "anthropic"}, clear=True):
            from draftsmith.config import Settings

            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_settings_api_keys_are_secret(self, mock_settings):
        """API keys should be stored as SecretStr."""
        # Direct access should not reveal the value
        assert "test-openai-key" not in str(mock_settings.openai_api_key)

        # Explicit accessors should reveal the value
        assert mock_settings.openai_api_key_value == "test-openai-key"
        assert mock_settings.google_api_key_value == "test-google-key"

    def test_credential_for_vendor(self, mock_settings):
        assert mock_settings.credential_for(Vendor.GOOGLE) == "test-google-key"
        assert mock_settings.credential_for(Vendor.OPENAI) == "test-openai-key"

    def test_default_model_for_vendor(self, mock_settings):
        assert mock_settings.default_model_for(Vendor.GOOGLE) == "gemini-2.5-flash"
        assert mock_settings.default_model_for(Vendor.OPENAI) == "gpt-4o"

    def test_settings_paths_are_resolved(self, mock_settings):
        """Path settings should be resolved to absolute paths."""
        assert mock_settings.vector_store_path.is_absolute()
        assert mock_settings.vector_store_path.name == "store.sqlite3"

    def test_get_settings_is_cached(self):
        """get_settings should return cached instance."""
        from draftsmith.config import get_settings

        # Clear cache first
        get_settings.cache_clear()

        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2
