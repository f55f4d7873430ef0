import json
from pathlib import Path

import pytest

from map_leads.errors import ConfigError
from map_leads.io_json import load_state, save_state


def test_missing_state_file_loads_empty(tmp_path: Path) -> None:
    store, identities = load_state(str(tmp_path / "absent.json"))
    assert store.snapshot() == {}
    assert identities.snapshot() == {}


def test_save_then_load_keeps_collections_and_identities(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store, identities = load_state(str(path))
    store.set("profiles", "u1", {"email": "a@b.com", "leads_used": 3})
    identities.add_user("u1", "a@b.com")

    save_state(str(path), store, identities)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["collections"]["profiles"]["u1"]["leads_used"] == 3
    reloaded_store, reloaded_identities = load_state(str(path))
    assert reloaded_store.get("profiles", "u1") == {"email": "a@b.com", "leads_used": 3}
    assert reloaded_identities.get_user("u1") == {"email": "a@b.com", "disabled": False}


def test_invalid_state_file_is_a_config_error(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_state(str(broken))

    listing = tmp_path / "list.json"
    listing.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_state(str(listing))


@pytest.mark.parametrize("key", ["collections", "identities"])
def test_state_sections_must_be_objects(tmp_path: Path, key: str) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({key: ["u1"]}), encoding="utf-8")
    with pytest.raises(ConfigError, match=key):
        load_state(str(path))
