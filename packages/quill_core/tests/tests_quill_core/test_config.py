import pytest
from pydantic import ValidationError
from quill_core import QuillSettings


class TestQuillSettings:
    def test_default_development_state(self):
        """By default, settings are in development mode."""
        settings = QuillSettings()
        assert settings.DEBUG is True
        assert settings.ENVIRONMENT == "development"
        assert settings.is_development() is True

    def test_is_development_logic(self):
        """Debug mode wins; otherwise the environment decides."""
        assert QuillSettings(DEBUG=True, ENVIRONMENT="production").is_development()
        assert QuillSettings(DEBUG=False, ENVIRONMENT="development").is_development()
        assert (
            QuillSettings(DEBUG=False, ENVIRONMENT="production").is_development()
            is False
        )

    def test_pagination_defaults(self):
        """Should default to 30 items per page, at most 100."""
        settings = QuillSettings()
        assert settings.DEFAULT_ITEMS_PER_PAGE == 30
        assert settings.MAX_ITEMS_PER_PAGE == 100

    def test_default_page_size_above_maximum_is_rejected(self):
        """Should reject a default page size above the maximum."""
        with pytest.raises(ValidationError, match="cannot exceed MAX_ITEMS_PER_PAGE"):
            QuillSettings(DEFAULT_ITEMS_PER_PAGE=50, MAX_ITEMS_PER_PAGE=10)

    def test_default_page_size_below_one_is_rejected(self):
        """Should reject a default page size below one."""
        with pytest.raises(ValidationError, match="must be at least 1"):
            QuillSettings(DEFAULT_ITEMS_PER_PAGE=0)

    def test_env_variable_overrides(self, monkeypatch):
        """Environment variables override the defaults."""
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///other.db")
        monkeypatch.setenv("ENABLE_REQUEST_ID", "false")
        monkeypatch.setenv("MAX_ITEMS_PER_PAGE", "500")

        settings = QuillSettings()

        assert settings.DATABASE_URL == "sqlite+aiosqlite:///other.db"
        assert settings.ENABLE_REQUEST_ID is False
        assert settings.MAX_ITEMS_PER_PAGE == 500

    def test_invalid_environment_is_rejected(self):
        """Should reject an unknown environment name."""
        with pytest.raises(ValidationError):
            QuillSettings(ENVIRONMENT="qa")

    def test_subclass_can_add_keys(self):
        """Should let applications extend the settings."""
        class BlogSettings(QuillSettings):
            APP_TITLE: str = "Blog"
            FEATURED_POSTS: int = 3

        settings = BlogSettings()
        assert settings.APP_TITLE == "Blog"
        assert settings.FEATURED_POSTS == 3
