import json

import pytest

from infrastructure.settings import JsonSettings


def test_missing_file_uses_defaults(tmp_path):
    settings = JsonSettings(tmp_path / "nope.json")
    assert settings.get("library.fetch_limit") == 100
    assert settings.get("preview.max_side") == 1600
    assert settings.get("no.such.key", "x") == "x"


def test_missing_file_required_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonSettings(tmp_path / "nope.json", required=True)


def test_file_values_override_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"library": {"root": "/photos", "fetch_limit": "25"}}), encoding="utf-8"
    )
    settings = JsonSettings(path)
    assert settings.get("library.root") == "/photos"
    assert settings.get_int("library.fetch_limit", 100) == 25
    assert ".jpg" in settings.get("library.extensions")
    assert settings.path == path


def test_get_int_falls_back_on_garbage(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"preview": {"max_side": "big"}}), encoding="utf-8")
    assert JsonSettings(path).get_int("preview.max_side", 800) == 800


def test_non_object_root_is_rejected(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        JsonSettings(path)
