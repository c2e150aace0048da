import pytest

from attention_api.config import APIConfig


def test_credential_from_environment(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "secret")
    assert APIConfig.from_env().api_key == "secret"

    monkeypatch.setenv("GEMINI_API_KEY", "gemini-secret")
    assert APIConfig.from_env().api_key == "gemini-secret"


def test_missing_credential(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    settings = APIConfig.from_env()
    assert settings.api_key is None
    assert not settings.has_credential


def test_yaml_never_contains_credential(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    path = tmp_path / "config.yaml"

    APIConfig(api_key="secret", playback_interval=0.5).save_yaml(str(path))
    assert "secret" not in path.read_text()

    loaded = APIConfig.load_yaml(str(path))
    assert loaded.playback_interval == 0.5
    assert loaded.api_key == "secret"


def test_unknown_yaml_key(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("playback_speed: 2\n")
    with pytest.raises(ValueError):
        APIConfig.load_yaml(str(path))


def test_thresholds_are_ordered():
    with pytest.raises(AssertionError):
        APIConfig(materialize_threshold=0.2, render_threshold=0.05)
