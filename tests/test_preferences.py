from tether.paths.models import DEFAULT_PROTECTED, PathsSettings
from tether.preferences import Preferences
from tether.secrets.models import SecretsSettings
from tether.tools.models import ToolsSettings


def _prefs_from(monkeypatch, path):
    monkeypatch.setattr(Preferences, "get_preferences_path", lambda self: (path, path.exists()))
    return Preferences()


def test_sections_load_from_yaml(monkeypatch, tmp_path):
    prefs_file = tmp_path / "preferences.yml"
    prefs_file.write_text(
        """
secrets:
  catch_all_min_entropy: 4.5
  allowlist:
    - EXAMPLEKEY
paths:
  allowed_base: /srv/work
tools:
  mode: whitelist
  whitelist: [scan]
  files:
    max_read_bytes: 2048
"""
    )
    prefs = _prefs_from(monkeypatch, prefs_file)

    assert prefs.get("secrets", "allowlist") == ["EXAMPLEKEY"]

    secrets = prefs.get_section("secrets", cast="obj")
    assert isinstance(secrets, SecretsSettings)
    assert secrets.catch_all_min_entropy == 4.5
    assert secrets.keyword_min_length == 16

    paths = prefs.get_section("paths", cast="obj")
    assert isinstance(paths, PathsSettings)
    assert paths.allowed_base == "/srv/work"
    assert paths.protected == DEFAULT_PROTECTED

    tools = prefs.get_section("tools", cast="obj")
    assert isinstance(tools, ToolsSettings)
    assert tools.files.max_read_bytes == 2048


def test_missing_file_yields_defaults(monkeypatch, tmp_path):
    prefs = _prefs_from(monkeypatch, tmp_path / "absent.yml")
    assert prefs.get("secrets", "allowlist", default=[]) == []
    assert prefs.get_section("secrets") == {}
    assert prefs.get_section("secrets", cast="obj") == SecretsSettings()


def test_malformed_yaml_is_ignored(monkeypatch, tmp_path):
    prefs_file = tmp_path / "preferences.yml"
    prefs_file.write_text("secrets: [unclosed\n")
    prefs = _prefs_from(monkeypatch, prefs_file)
    assert prefs.prefs == {}


def test_non_mapping_top_level_is_ignored(monkeypatch, tmp_path):
    prefs_file = tmp_path / "preferences.yml"
    prefs_file.write_text("- just\n- a list\n")
    assert _prefs_from(monkeypatch, prefs_file).prefs == {}


def test_invalid_section_falls_back_to_dict(monkeypatch, tmp_path):
    prefs_file = tmp_path / "preferences.yml"
    prefs_file.write_text("tools:\n  mode: yolo\n")
    prefs = _prefs_from(monkeypatch, prefs_file)
    assert prefs.get_section("tools", cast="obj") == {"mode": "yolo"}


def test_set_and_save_roundtrip(monkeypatch, tmp_path):
    prefs_file = tmp_path / "nested" / "preferences.yml"
    prefs = _prefs_from(monkeypatch, prefs_file)
    prefs.set("secrets", "redact_tool_output", value=False, save=True)

    assert prefs_file.exists()
    reloaded = _prefs_from(monkeypatch, prefs_file)
    assert reloaded.get("secrets", "redact_tool_output") is False
