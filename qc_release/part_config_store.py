from __future__ import annotations

import copy
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from .catalog import INITIAL_PART_CONFIGS
from .field_validation import FieldDefinition, FieldDefinitionError

logger = logging.getLogger(__name__)

REVISION_PATTERN = re.compile(r"Rev\s*([A-Z]+)", re.IGNORECASE)


class PartConfigStoreError(ValueError):
    pass


class PartConfigNotFoundError(PartConfigStoreError):
    pass


def next_revision(current_revision: str) -> str:
    match = REVISION_PATTERN.search(current_revision or "")
    if not match:
        return "Rev A"
    letters = list(match.group(1).upper())
    index = len(letters) - 1
    while index >= 0:
        if letters[index] != "Z":
            letters[index] = chr(ord(letters[index]) + 1)
            return "Rev " + "".join(letters)
        letters[index] = "A"
        index -= 1
    return "Rev A" + "".join(letters)


def _generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:10]}"


class PartConfigStore:
    """
    Part configurations and their revision history, held in memory and
    mirrored to a JSON file.

    Writes are best-effort: a failed write is logged and the in-memory state
    stays authoritative. Demo data seeded by :meth:`load_demo` is only written
    once something changes. A corrupt file raises :class:`PartConfigStoreError`
    from :meth:`load` so the caller can fall back to :meth:`load_demo`.
    """

    def __init__(self, *, path: Path) -> None:
        self.path = path
        self._parts: list[dict[str, Any]] = []
        self._revisions: list[dict[str, Any]] = []

    def load(self) -> None:
        if not self.path.exists():
            self.load_demo()
            return
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception as exc:
            raise PartConfigStoreError(f"Failed to read part configuration store: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("parts"), list):
            raise PartConfigStoreError("Part configuration store payload has invalid format.")
        parts = [part for part in payload["parts"] if isinstance(part, dict)]
        for part in parts:
            part["fields"] = self._normalize_fields(part.get("fields", []))
        self._parts = parts
        self._revisions = [rev for rev in payload.get("revisions", []) if isinstance(rev, dict)]

    def load_demo(self) -> None:
        timestamp = self._now_iso()
        self._parts = []
        self._revisions = []
        for template in INITIAL_PART_CONFIGS:
            part = copy.deepcopy(template)
            part["fields"] = self._normalize_fields(part.get("fields", []))
            part["created_at"] = timestamp
            part["updated_at"] = timestamp
            self._parts.append(part)
            self._revisions.append(self._revision_record(part, part["current_revision"], "Initial release", "System"))

    def list_parts(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._parts)

    def get_part(self, part_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._find_part(part_id))

    def get_part_by_number(self, part_number: str) -> dict[str, Any] | None:
        wanted = (part_number or "").strip().lower()
        for part in self._parts:
            if str(part.get("part_number", "")).lower() == wanted:
                return copy.deepcopy(part)
        return None

    def field_definitions(self, part_id: str) -> list[FieldDefinition]:
        part = self._find_part(part_id)
        return [FieldDefinition.from_dict(field) for field in part.get("fields", [])]

    def create_part(self, data: dict[str, Any]) -> dict[str, Any]:
        part_number = str(data.get("part_number") or "").strip()
        name = str(data.get("name") or "").strip()
        if not part_number or not name:
            raise PartConfigStoreError("Part Number and Name are required")
        fields = self._normalize_fields(data.get("fields", []))
        if not fields:
            raise PartConfigStoreError("At least one field is required")
        if self.get_part_by_number(part_number) is not None:
            raise PartConfigStoreError(f"Part number '{part_number}' already exists")

        timestamp = self._now_iso()
        part = {
            "id": _generate_id("part"),
            "part_number": part_number,
            "name": name,
            "customer": str(data.get("customer") or "").strip(),
            "current_revision": str(data.get("current_revision") or "Rev A"),
            "specification": str(data.get("specification") or "").strip(),
            "fields": fields,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        self._parts.append(part)
        self._revisions.append(self._revision_record(part, part["current_revision"], "Initial release", "System"))
        self._persist()
        return copy.deepcopy(part)

    def update_part(self, part_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        part = self._find_part(part_id)
        for key, value in updates.items():
            if key in {"id", "created_at"}:
                continue
            if key == "fields":
                value = self._normalize_fields(value)
            part[key] = value
        self._touch(part)
        return copy.deepcopy(part)

    def delete_part(self, part_id: str) -> None:
        part = self._find_part(part_id)
        self._parts = [entry for entry in self._parts if entry is not part]
        self._revisions = [rev for rev in self._revisions if rev.get("part_config_id") != part_id]
        self._persist()

    def create_revision(self, part_id: str, change_note: str, created_by: str) -> dict[str, Any]:
        note = (change_note or "").strip()
        if not note:
            raise PartConfigStoreError("Change note is required")
        part = self._find_part(part_id)
        revision_label = next_revision(part.get("current_revision", ""))
        revision = self._revision_record(part, revision_label, note, created_by)
        self._revisions.append(revision)
        part["current_revision"] = revision_label
        self._touch(part)
        return copy.deepcopy(revision)

    def revisions_for_part(self, part_id: str) -> list[dict[str, Any]]:
        revisions = [rev for rev in self._revisions if rev.get("part_config_id") == part_id]
        revisions.sort(key=lambda rev: rev.get("created_at", ""), reverse=True)
        return copy.deepcopy(revisions)

    def active_revision(self, part_id: str) -> dict[str, Any] | None:
        part = self._find_part(part_id)
        for revision in self._revisions:
            if revision.get("part_config_id") == part_id and revision.get("revision") == part.get("current_revision"):
                return copy.deepcopy(revision)
        return None

    def add_field(self, part_id: str, field: dict[str, Any]) -> dict[str, Any]:
        part = self._find_part(part_id)
        definition = self._definition(field)
        if any(existing.get("id") == definition.id for existing in part["fields"]):
            raise PartConfigStoreError(f"Field id '{definition.id}' already exists on this part")
        part["fields"].append(definition.to_dict())
        self._touch(part)
        return copy.deepcopy(part)

    def update_field(self, part_id: str, field_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        part = self._find_part(part_id)
        for index, existing in enumerate(part["fields"]):
            if existing.get("id") != field_id:
                continue
            merged = {**existing, **updates, "id": field_id}
            part["fields"][index] = self._definition(merged).to_dict()
            self._touch(part)
            return copy.deepcopy(part)
        raise PartConfigNotFoundError(f"Unknown field_id '{field_id}'.")

    def remove_field(self, part_id: str, field_id: str) -> dict[str, Any]:
        part = self._find_part(part_id)
        part["fields"] = [field for field in part["fields"] if field.get("id") != field_id]
        self._touch(part)
        return copy.deepcopy(part)

    def reorder_fields(self, part_id: str, field_ids: list[str]) -> dict[str, Any]:
        part = self._find_part(part_id)
        by_id = {field.get("id"): field for field in part["fields"]}
        # Ids missing from the part are dropped, as are fields not listed.
        part["fields"] = [by_id[field_id] for field_id in field_ids if field_id in by_id]
        self._touch(part)
        return copy.deepcopy(part)

    def _find_part(self, part_id: str) -> dict[str, Any]:
        for part in self._parts:
            if part.get("id") == part_id:
                return part
        raise PartConfigNotFoundError(f"Unknown part_id '{part_id}'.")

    def _definition(self, payload: dict[str, Any]) -> FieldDefinition:
        try:
            return FieldDefinition.from_dict(payload)
        except (FieldDefinitionError, TypeError, ValueError) as exc:
            raise PartConfigStoreError(str(exc)) from exc

    def _normalize_fields(self, fields: Any) -> list[dict[str, Any]]:
        if not isinstance(fields, list):
            raise PartConfigStoreError("fields must be a list.")
        return [self._definition(field).to_dict() for field in fields if isinstance(field, dict)]

    def _revision_record(self, part: dict[str, Any], revision: str, change_note: str, created_by: str) -> dict[str, Any]:
        return {
            "id": _generate_id("rev"),
            "part_config_id": part["id"],
            "revision": revision,
            "fields": copy.deepcopy(part.get("fields", [])),
            "change_note": change_note,
            "created_at": self._now_iso(),
            "created_by": created_by,
        }

    def _touch(self, part: dict[str, Any]) -> None:
        part["updated_at"] = self._now_iso()
        self._persist()

    def _persist(self) -> None:
        payload = {"parts": self._parts, "revisions": self._revisions}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to persist part configurations to %s: %s", self.path, exc)

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()
