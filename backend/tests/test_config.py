"""Tests for app.config."""

from app.config import Settings


class TestMissingCredentials:
    def test_assistant_backend_requires_key_and_id(self):
        settings = Settings(
            _env_file=None, model_backend="assistant", openai_api_key=None, assistant_id=None
        )
        assert settings.missing_credentials() == ["OPENAI_API_KEY", "ASSISTANT_ID"]

    def test_chat_backend_requires_groq_key(self):
        settings = Settings(_env_file=None, model_backend="chat", groq_api_key=None)
        assert settings.missing_credentials() == ["GROQ_API_KEY"]

    def test_configured_backend(self):
        settings = Settings(
            _env_file=None,
            model_backend="assistant",
            openai_api_key="sk-test",
            assistant_id="asst_1",
        )
        assert settings.missing_credentials() == []


def test_defaults_match_polling_contract():
    settings = Settings(_env_file=None)
    assert settings.poll_interval_seconds == 1.0
    assert settings.poll_max_attempts == 60
    assert settings.max_redirects == 5


def test_server_defaults():
    settings = Settings(_env_file=None)
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000


def test_cors_origin_list():
    settings = Settings(_env_file=None, cors_origins="http://a.test, http://b.test")
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]
