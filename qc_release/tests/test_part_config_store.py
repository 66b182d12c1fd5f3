from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from qc_release.part_config_store import (  # noqa: E402
    PartConfigNotFoundError,
    PartConfigStore,
    PartConfigStoreError,
    next_revision,
)


def _new_part_payload() -> dict:
    return {
        "part_number": "410-10001",
        "name": "SPACER",
        "customer": "ACME",
        "fields": [
            {"id": "f-od", "name": "OD", "type": "numeric", "required": True, "min": 1.0, "max": 1.1},
            {"id": "f-visual", "name": "Visual", "type": "boolean", "required": True},
        ],
    }


def test_missing_file_seeds_demo_parts(tmp_path: Path):
    store = PartConfigStore(path=tmp_path / "parts.json")
    store.load()

    parts = store.list_parts()
    assert {part["part_number"] for part in parts} == {"320-52761", "320-52762"}
    assert not (tmp_path / "parts.json").exists()
    assert store.get_part_by_number("320-52761")["name"] == "OUTER RING"


def test_demo_parts_are_written_on_first_change(tmp_path: Path):
    path = tmp_path / "parts.json"
    store = PartConfigStore(path=path)
    store.load()

    store.update_part("part-inner-ring", {"customer": "RBC Bearings"})

    assert path.exists()
    reloaded = PartConfigStore(path=path)
    reloaded.load()
    assert {part["id"] for part in reloaded.list_parts()} == {"part-outer-ring", "part-inner-ring"}
    assert reloaded.get_part("part-inner-ring")["customer"] == "RBC Bearings"


def test_store_round_trips_through_disk(tmp_path: Path):
    path = tmp_path / "parts.json"
    store = PartConfigStore(path=path)
    store.load()
    created = store.create_part(_new_part_payload())

    reloaded = PartConfigStore(path=path)
    reloaded.load()

    assert reloaded.get_part(created["id"])["fields"][0]["id"] == "f-od"
    assert len(reloaded.revisions_for_part(created["id"])) == 1


def test_corrupt_file_raises_store_error(tmp_path: Path):
    path = tmp_path / "parts.json"
    path.write_text("{not json", encoding="utf-8")
    store = PartConfigStore(path=path)

    with pytest.raises(PartConfigStoreError):
        store.load()

    store.load_demo()
    assert store.list_parts()


def test_create_part_requires_fields_and_identity(tmp_path: Path):
    store = PartConfigStore(path=tmp_path / "parts.json")
    store.load()

    with pytest.raises(PartConfigStoreError, match="required"):
        store.create_part({"part_number": "", "name": "X", "fields": []})
    with pytest.raises(PartConfigStoreError, match="At least one field"):
        store.create_part({"part_number": "1", "name": "X", "fields": []})
    with pytest.raises(PartConfigStoreError, match="already exists"):
        store.create_part({**_new_part_payload(), "part_number": "320-52761"})


@pytest.mark.parametrize(
    ("current", "expected"),
    [("Rev A", "Rev B"), ("rev c", "Rev D"), ("Rev Z", "Rev AA"), ("Rev AZ", "Rev BA"), ("Initial", "Rev A")],
)
def test_next_revision(current, expected):
    assert next_revision(current) == expected


def test_create_revision_snapshots_fields(tmp_path: Path):
    store = PartConfigStore(path=tmp_path / "parts.json")
    store.load()
    part = store.create_part(_new_part_payload())

    revision = store.create_revision(part["id"], "Tighten OD", "Gael R.")
    store.remove_field(part["id"], "f-visual")

    assert revision["revision"] == "Rev B"
    assert store.get_part(part["id"])["current_revision"] == "Rev B"
    assert len(revision["fields"]) == 2
    assert store.active_revision(part["id"])["id"] == revision["id"]
    with pytest.raises(PartConfigStoreError, match="Change note"):
        store.create_revision(part["id"], "  ", "Gael R.")


def test_field_operations(tmp_path: Path):
    store = PartConfigStore(path=tmp_path / "parts.json")
    store.load()
    part = store.create_part(_new_part_payload())

    store.add_field(part["id"], {"id": "f-pkg", "name": "Pack", "type": "select", "options": ["Box", "Bag"]})
    store.update_field(part["id"], "f-od", {"max": 1.2})
    updated = store.reorder_fields(part["id"], ["f-pkg", "f-od", "f-visual", "f-ghost"])

    assert [field["id"] for field in updated["fields"]] == ["f-pkg", "f-od", "f-visual"]
    assert updated["fields"][1]["max"] == 1.2
    definitions = store.field_definitions(part["id"])
    assert definitions[0].options == ("Box", "Bag")

    with pytest.raises(PartConfigStoreError, match="already exists"):
        store.add_field(part["id"], {"id": "f-od", "name": "OD", "type": "numeric"})
    with pytest.raises(PartConfigNotFoundError):
        store.update_field(part["id"], "f-ghost", {"name": "Ghost"})


def test_delete_part_removes_revisions(tmp_path: Path):
    store = PartConfigStore(path=tmp_path / "parts.json")
    store.load()
    part = store.create_part(_new_part_payload())

    store.delete_part(part["id"])

    assert store.revisions_for_part(part["id"]) == []
    with pytest.raises(PartConfigNotFoundError):
        store.get_part(part["id"])


def test_failed_write_keeps_memory_state(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = PartConfigStore(path=blocker / "parts.json")
    store.load_demo()

    part = store.create_part(_new_part_payload())

    assert store.get_part(part["id"])["name"] == "SPACER"
    assert not (blocker / "parts.json").exists()
