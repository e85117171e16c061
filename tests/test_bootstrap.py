import json

from bootstrap import load_seeds
from config import DEFAULT_SEEDS


def test_missing_dir_uses_defaults(tmp_path):
    seeds = load_seeds(tmp_path / "nowhere")
    assert seeds == DEFAULT_SEEDS


def test_files_override_their_defaults(tmp_path):
    (tmp_path / "settings.json").write_text(json.dumps({"storageKey": "mine", "autosave": False}))
    (tmp_path / "data-store.json").write_text(json.dumps({"tasks": []}))

    seeds = load_seeds(tmp_path)

    assert seeds["settings"]["storageKey"] == "mine"
    assert seeds["settings"]["autosave"] is False
    assert seeds["settings"]["timeFormat"] == "HH:mm:ss"
    assert seeds["bootstrap"] == {"tasks": []}
    assert seeds["config"] == DEFAULT_SEEDS["config"]


def test_bad_source_does_not_affect_others(tmp_path, capsys):
    (tmp_path / "config.json").write_text("{broken")
    (tmp_path / "prompts.json").write_text(json.dumps(["not", "an", "object"]))
    (tmp_path / "preferences.json").write_text(json.dumps({"theme": "dark"}))

    seeds = load_seeds(tmp_path)

    assert seeds["config"] == DEFAULT_SEEDS["config"]
    assert seeds["prompts"] == DEFAULT_SEEDS["prompts"]
    assert seeds["preferences"]["theme"] == "dark"
    assert "config.json" in capsys.readouterr().out


def test_defaults_are_not_shared(tmp_path):
    seeds = load_seeds(tmp_path)
    seeds["bootstrap"]["tasks"].clear()
    assert DEFAULT_SEEDS["bootstrap"]["tasks"]
