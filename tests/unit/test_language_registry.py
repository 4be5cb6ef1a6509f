import json
from pathlib import Path

from src.adapters.fs.language_registry import JsonFileLanguageRegistry


def test_missing_file_is_empty(tmp_path: Path):
    assert JsonFileLanguageRegistry(tmp_path / "languages.json").load() == []


def test_save_then_load(tmp_path: Path):
    registry = JsonFileLanguageRegistry(tmp_path / "sub" / "languages.json")
    entries = [{"iso2": "fr", "native_name": "Français", "slug": "", "is_default": True}]

    registry.save(entries)

    assert registry.load() == entries
    raw = json.loads(registry.path.read_text(encoding="utf-8"))
    assert raw == {"languages": entries}
    assert not registry.path.with_suffix(".json.tmp").exists()


def test_bare_list_accepted(tmp_path: Path):
    path = tmp_path / "languages.json"
    path.write_text(json.dumps([{"iso2": "en"}, "junk"]))

    assert JsonFileLanguageRegistry(path).load() == [{"iso2": "en"}]


def test_corrupt_file_is_empty(tmp_path: Path):
    path = tmp_path / "languages.json"
    path.write_text("{not json")

    assert JsonFileLanguageRegistry(path).load() == []


def test_wrong_shape_is_empty(tmp_path: Path):
    path = tmp_path / "languages.json"
    path.write_text(json.dumps({"languages": "fr"}))

    assert JsonFileLanguageRegistry(path).load() == []
