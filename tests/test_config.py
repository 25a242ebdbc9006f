from trackracer_support.config import DEFAULT_MODEL, LAN_OLLAMA_URL, LOCAL_OLLAMA_URL, load_settings
from trackracer_support.prompt_loader import KNOWLEDGE_CONTEXT_HEADER, SYSTEM_PROMPT_FILE, load_prompt


def _clear_env(monkeypatch) -> None:
    for name in ("OLLAMA_URL", "OLLAMA_MODEL", "KNOWLEDGE_DIR", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment(monkeypatch) -> None:
    _clear_env(monkeypatch)
    settings = load_settings()
    assert settings.ollama_url is None
    assert settings.fallback_endpoints == (LAN_OLLAMA_URL, LOCAL_OLLAMA_URL)
    assert settings.model == DEFAULT_MODEL
    assert settings.request_timeout == 60.0
    assert settings.debug_metadata is False
    assert settings.knowledge_dir.name == "knowledge"


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("OLLAMA_URL", "  https://tunnel.example.com  ")
    monkeypatch.setenv("KNOWLEDGE_DIR", str(tmp_path))
    monkeypatch.setenv("APP_ENV", "Development")
    settings = load_settings()
    assert settings.ollama_url == "https://tunnel.example.com"
    assert settings.knowledge_dir == tmp_path
    assert settings.debug_metadata is True


def test_blank_tunnel_url_is_unset(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("OLLAMA_URL", "   ")
    assert load_settings().ollama_url is None


def test_bundled_system_prompt_loads(monkeypatch) -> None:
    _clear_env(monkeypatch)
    prompt = load_prompt(load_settings().prompts_dir / SYSTEM_PROMPT_FILE)
    assert "Track Racer" in prompt
    assert KNOWLEDGE_CONTEXT_HEADER not in prompt
    assert prompt == prompt.rstrip()


def test_prompt_bom_and_bad_bytes_are_dropped(tmp_path) -> None:
    path = tmp_path / "prompt.txt"
    path.write_bytes(b"\xef\xbb\xbfBe helpful.\xff\n\n")
    assert load_prompt(path) == "Be helpful."
