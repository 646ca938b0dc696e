"""
Configuration loading and store selection tests
"""

import pytest

from ideatrium.config.loader import ConfigLoader
from ideatrium.core.db import DatabaseManager
from ideatrium.core.errors import AIServiceError
from ideatrium.core.local_store import LocalStore
from ideatrium.core.services import build_store
from ideatrium.llm.prompt_manager import PromptManager


def write_config(tmp_path, body):
    path = tmp_path / "config.toml"
    path.write_text(body, encoding="utf-8")
    loader = ConfigLoader(str(path))
    loader.load()
    return loader


def test_default_config_is_created(tmp_path):
    path = tmp_path / "nested" / "config.toml"
    loader = ConfigLoader(str(path))
    loader.load()

    assert path.exists()
    assert loader.get("storage.mode") == "auto"
    assert loader.get("server.port") == 8000
    assert loader.get("missing.key", "fallback") == "fallback"


def test_env_placeholders_are_replaced(tmp_path, monkeypatch):
    monkeypatch.setenv("IDEATRIUM_TEST_KEY", "secret")
    monkeypatch.delenv("IDEATRIUM_UNSET_KEY", raising=False)
    loader = write_config(
        tmp_path,
        '[ai]\napi_key = "${IDEATRIUM_TEST_KEY}"\nmodel = "${IDEATRIUM_UNSET_KEY:gemini-pro}"\n',
    )

    assert loader.get("ai.api_key") == "secret"
    assert loader.get("ai.model") == "gemini-pro"


def test_set_persists_nested_keys(tmp_path):
    loader = write_config(tmp_path, "[server]\nport = 8000\n")
    assert loader.set("offline.cache_version", "v2.0.0")

    reloaded = ConfigLoader(loader.config_file)
    reloaded.load()
    assert reloaded.get("offline.cache_version") == "v2.0.0"


def test_auto_mode_prefers_database_when_path_set(tmp_path):
    db_path = tmp_path / "data.db"
    loader = write_config(
        tmp_path, f'[storage]\nmode = "auto"\n[database]\npath = \'{db_path}\'\n'
    )
    store = build_store(loader)
    assert isinstance(store, DatabaseManager)
    assert store.requires_auth


def test_auto_mode_without_database_uses_local_store(tmp_path):
    local_path = tmp_path / "local.json"
    loader = write_config(
        tmp_path, f'[storage]\nmode = "auto"\nlocal_path = \'{local_path}\'\n'
    )
    store = build_store(loader)
    assert isinstance(store, LocalStore)
    assert not store.requires_auth


def test_unknown_storage_mode_is_rejected(tmp_path):
    loader = write_config(tmp_path, '[storage]\nmode = "cloud"\n')
    with pytest.raises(ValueError):
        build_store(loader)


def test_prompt_manager_renders_templates():
    manager = PromptManager()
    assert manager.loaded

    prompt = manager.get_user_prompt(
        "idea_suggestions", title="T", description="D", impact=2, effort=4
    )
    assert 'Title: "T"' in prompt
    assert '"suggestions": [' in prompt
    assert manager.get_config_params("idea_insights")["temperature"] == 0.6
    assert manager.get_config_params("idea_suggestions")["temperature"] == 0.7
    assert manager.get_user_prompt("unknown_category") == ""

    rendered = manager.render("idea_insights", count=1, idea_lines="1. x")
    assert "Analyze these 1 ideas" in rendered.user
    assert rendered.system
    assert rendered.params["temperature"] == 0.6
    with pytest.raises(AIServiceError):
        manager.render("unknown_category")
