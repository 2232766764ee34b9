from studydeck.config import DEFAULT_DB_PATH, Settings


def test_defaults(monkeypatch):
    for name in ("STUDYDECK_DB_PATH", "STUDYDECK_EXAM_QUESTION_COUNT", "STUDYDECK_REVIEW_COUNT", "STUDYDECK_USER_ID"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.exam_duration_seconds == 3601
    assert settings.exam_question_count == 30
    assert settings.user_id == "local"
    assert settings.review_count == 5


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("STUDYDECK_EXAM_QUESTION_COUNT", "5")
    monkeypatch.setenv("STUDYDECK_LOG_LEVEL", "debug")
    settings = Settings(_env_file=None)
    assert settings.exam_question_count == 5
    assert settings.log_level == "debug"


def test_get_settings_cached(settings_env):
    from studydeck.config import get_settings
    assert get_settings() is settings_env
    assert settings_env.user_id == "tester"
