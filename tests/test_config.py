import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from tvnotifier.config import Settings, load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep a developer's .env and exported variables out of these tests
    monkeypatch.chdir(tmp_path)
    for name in (
        "DATABASE_URL",
        "PG_CONNECTION_STRING",
        "MOVIE_PLATFORMS",
        "RECIPIENTS",
        "RAPID_API_KEY",
        "TIMEZONE",
        "FAIL_FAST",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings()

    assert settings.database_url.startswith("sqlite+aiosqlite://")
    assert settings.future_day_limit == 7
    assert settings.max_concurrency == 8
    assert settings.fail_fast is False
    assert settings.digest_cron == "0 8 * * *"
    assert settings.movie_platforms == []


def test_pg_connection_string_is_rewritten_to_asyncpg(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PG_CONNECTION_STRING", "postgres://notifier:secret@db:5432/tv")

    settings = Settings()

    assert settings.database_url == "postgresql+asyncpg://notifier:secret@db:5432/tv"


def test_comma_separated_lists_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIE_PLATFORMS", "netflix, hulu ,,prime")
    monkeypatch.setenv("RAPID_API_KEY", "key")
    monkeypatch.setenv("RECIPIENTS", "a@example.com")

    settings = Settings()

    assert settings.movie_platforms == ["netflix", "hulu", "prime"]
    assert settings.recipients == ["a@example.com"]


@pytest.mark.parametrize(
    "field, value",
    [
        ("digest_cron", "not a cron"),
        ("timezone", "Mars/Olympus"),
        ("future_day_limit", -1),
        ("max_concurrency", 0),
        ("tvmaze_base_url", "ftp://api.tvmaze.com"),
        ("log_level", "chatty"),
    ],
)
def test_invalid_values_are_rejected(field: str, value) -> None:
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_movie_platforms_require_api_key() -> None:
    with pytest.raises(ValidationError, match="rapid_api_key"):
        Settings(movie_platforms=["netflix"])


def test_load_settings_overlays_json_file(tmp_path: Path) -> None:
    config_file = tmp_path / "config.json"
    config_file.write_text(
        json.dumps(
            {
                "rapid_api_key": "key",
                "movie_platforms": ["netflix"],
                "future_day_limit": 3,
                "fail_fast": True,
            }
        ),
        encoding="utf-8",
    )

    settings = load_settings(config_file)

    assert settings.movie_platforms == ["netflix"]
    assert settings.future_day_limit == 3
    assert settings.fail_fast is True


def test_load_settings_rejects_non_object_json(tmp_path: Path) -> None:
    config_file = tmp_path / "config.json"
    config_file.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError, match="JSON object"):
        load_settings(config_file)


def test_load_settings_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.json")


def test_key_value_connection_string_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PG_CONNECTION_STRING", "host=db user=notifier password=secret dbname=tv")

    with pytest.raises(ValidationError, match="key/value connection strings"):
        Settings()
