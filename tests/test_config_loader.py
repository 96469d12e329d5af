import json

import pytest

from config.loader import Settings, load_config, settings_from_config, validate_config


def test_defaults_without_config() -> None:
    settings = settings_from_config({}, env={})

    assert settings == Settings()
    assert settings.alone_timeout_seconds == 60.0
    assert settings.alternative_engines == ("deezer", "youtube", "soundcloud")


def test_load_and_apply_json_config(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "lavalink": {"url": "http://lavalink:2333", "password": "youshallnotpass"},
                "alone_timeout_seconds": 120,
                "alternative_engines": ["youtube", "deezer"],
                "max_guess_queries": 2,
            }
        )
    )

    settings = settings_from_config(load_config(str(path)), env={})

    assert settings.lavalink_url == "http://lavalink:2333"
    assert settings.lavalink_password == "youshallnotpass"
    assert settings.alone_timeout_seconds == 120
    assert settings.alternative_engines == ("youtube", "deezer")
    assert settings.max_guess_queries == 2


def test_environment_overrides_file_values() -> None:
    env = {
        "ENCORE_LAVALINK_URL": "http://other:2333",
        "ENCORE_ALONE_TIMEOUT_SECONDS": "15",
        "ENCORE_LOG_DIR": "/tmp/encore-logs",
    }

    settings = settings_from_config({"lavalink": {"url": "http://lavalink:2333"}}, env=env)

    assert settings.lavalink_url == "http://other:2333"
    assert settings.alone_timeout_seconds == 15.0
    assert settings.log_dir == "/tmp/encore-logs"


def test_invalid_environment_value_is_rejected() -> None:
    with pytest.raises(ValueError):
        settings_from_config({}, env={"ENCORE_ALONE_TIMEOUT_SECONDS": "soon"})


def test_validate_config_collects_every_error() -> None:
    errors = validate_config(
        {
            "lavalink": {"url": "lavalink:2333"},
            "provider_backend": "ffmpeg",
            "alone_timeout_seconds": 0,
            "search_cache_sample_size": True,
            "min_guess_confidence": 1.5,
            "alternative_engines": ["youtube", "bandcamp"],
        }
    )

    assert len(errors) == 6
    assert any("alternative_engines[1]" in error for error in errors)


def test_validate_config_rejects_non_object() -> None:
    assert validate_config(["not", "a", "dict"]) == ["config must be a JSON object"]


def test_settings_from_invalid_config_raises() -> None:
    with pytest.raises(ValueError, match="provider_backend"):
        settings_from_config({"provider_backend": "ffmpeg"}, env={})


def test_cache_and_search_command_settings() -> None:
    settings = settings_from_config(
        {
            "search_cache_expired_ratio": 0.5,
            "search_cache_max_rounds": 2,
            "search_engines": ["deezer"],
            "search_results_per_engine": 5,
        },
        env={},
    )

    assert settings.search_cache_expired_ratio == 0.5
    assert settings.search_cache_max_rounds == 2
    assert settings.search_engines == ("deezer",)
    assert settings.search_results_per_engine == 5

    errors = validate_config({"search_cache_expired_ratio": 2, "search_engines": ["vimeo"]})
    assert errors == [
        "search_cache_expired_ratio must be between 0 and 1",
        "search_engines[0] is not a known engine: 'vimeo'",
    ]
