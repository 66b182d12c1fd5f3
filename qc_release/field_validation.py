from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Union

from .inspection_specs import (
    STATUS_FAIL,
    STATUS_PASS,
    STATUS_PENDING,
    InspectionStatus,
    normalize_reading,
)
from .lot_disposition import ReleaseGate

logger = logging.getLogger(__name__)

FieldType = Literal["numeric", "boolean", "select"]
FIELD_TYPES: tuple[FieldType, ...] = ("numeric", "boolean", "select")

FieldValue = Union[float, bool, str, None]


class FieldDefinitionError(ValueError):
    pass


class FieldValueError(ValueError):
    pass


@dataclass(frozen=True)
class FieldDefinition:
    id: str
    name: str
    type: FieldType
    required: bool = False
    min: float | None = None
    max: float | None = None
    options: tuple[str, ...] = ()
    tool: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "required": self.required,
        }
        if self.type == "numeric":
            if self.min is not None:
                payload["min"] = self.min
            if self.max is not None:
                payload["max"] = self.max
        if self.type == "select":
            payload["options"] = list(self.options)
        if self.tool:
            payload["tool"] = self.tool
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "FieldDefinition":
        field_id = str(payload.get("id") or "").strip()
        if not field_id:
            raise FieldDefinitionError("Field id is required.")
        field_type = payload.get("type")
        if field_type not in FIELD_TYPES:
            raise FieldDefinitionError(f"Unknown field type '{field_type}' for field '{field_id}'.")

        min_value = payload.get("min") if field_type == "numeric" else None
        max_value = payload.get("max") if field_type == "numeric" else None
        options = payload.get("options") if field_type == "select" else None
        tool = payload.get("tool")
        return cls(
            id=field_id,
            name=str(payload.get("name") or field_id),
            type=field_type,
            required=bool(payload.get("required", False)),
            min=float(min_value) if min_value is not None else None,
            max=float(max_value) if max_value is not None else None,
            options=tuple(str(option).strip() for option in (options or []) if str(option).strip()),
            tool=str(tool).strip() if tool else None,
        )


@dataclass(frozen=True)
class InspectionValue:
    field_id: str
    value: FieldValue = None
    status: InspectionStatus = STATUS_PENDING

    def to_dict(self) -> dict[str, Any]:
        return {"fieldId": self.field_id, "value": self.value, "status": self.status}


@dataclass(frozen=True)
class InspectionStats:
    total: int
    completed: int
    passed: int
    failed: int

    @property
    def all_inspected(self) -> bool:
        return self.completed == self.total

    @property
    def all_pass(self) -> bool:
        return self.all_inspected and self.failed == 0 and self.total > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "passed": self.passed,
            "failed": self.failed,
            "all_inspected": self.all_inspected,
            "all_pass": self.all_pass,
        }


def validate_numeric_field(value: FieldValue, min_value: float | None, max_value: float | None) -> InspectionStatus:
    if value is None:
        return STATUS_PENDING
    if min_value is not None and value < min_value:
        return STATUS_FAIL
    if max_value is not None and value > max_value:
        return STATUS_FAIL
    return STATUS_PASS


def validate_boolean_field(value: FieldValue) -> InspectionStatus:
    if value is None:
        return STATUS_PENDING
    return STATUS_PASS if value else STATUS_FAIL


def validate_select_field(value: FieldValue, required: bool) -> InspectionStatus:
    # An unanswered select is pending whether or not it is required.
    if not value:
        return STATUS_PENDING
    return STATUS_PASS


def _numeric_status(definition: FieldDefinition, value: FieldValue) -> InspectionStatus:
    return validate_numeric_field(value, definition.min, definition.max)


def _boolean_status(definition: FieldDefinition, value: FieldValue) -> InspectionStatus:
    return validate_boolean_field(value)


def _select_status(definition: FieldDefinition, value: FieldValue) -> InspectionStatus:
    return validate_select_field(value, definition.required)


_STATUS_BY_TYPE: dict[str, Callable[[FieldDefinition, FieldValue], InspectionStatus]] = {
    "numeric": _numeric_status,
    "boolean": _boolean_status,
    "select": _select_status,
}


def coerce_field_value(definition: FieldDefinition, raw_value: Any) -> FieldValue:
    """Normalize a submitted value to the Python type of the field."""
    if raw_value is None:
        return None
    if definition.type == "numeric":
        if isinstance(raw_value, bool):
            raise FieldValueError(f"Field '{definition.id}' expects a number.")
        if isinstance(raw_value, str):
            if not raw_value.strip():
                return None
            try:
                raw_value = float(raw_value)
            except ValueError as exc:
                raise FieldValueError(f"Field '{definition.id}' expects a number.") from exc
        if not isinstance(raw_value, (int, float)):
            raise FieldValueError(f"Field '{definition.id}' expects a number.")
        return normalize_reading(raw_value)
    if definition.type == "boolean":
        if not isinstance(raw_value, bool):
            raise FieldValueError(f"Field '{definition.id}' expects true or false.")
        return raw_value
    if definition.type == "select":
        if not isinstance(raw_value, str):
            raise FieldValueError(f"Field '{definition.id}' expects an option string.")
        return raw_value.strip() or None
    raise FieldDefinitionError(f"Unknown field type '{definition.type}'.")


def field_status(definition: FieldDefinition, value: FieldValue) -> InspectionStatus:
    try:
        validator = _STATUS_BY_TYPE[definition.type]
    except KeyError as exc:
        raise FieldDefinitionError(f"Unknown field type '{definition.type}'.") from exc
    return validator(definition, value)


@dataclass
class DynamicFieldInspection:
    """Inspection values for the configured fields of one part."""

    fields: list[FieldDefinition]
    values: list[InspectionValue] = field(default_factory=list)

    def get_field(self, field_id: str) -> FieldDefinition | None:
        for definition in self.fields:
            if definition.id == field_id:
                return definition
        return None

    def find_value(self, field_id: str) -> InspectionValue | None:
        for value in self.values:
            if value.field_id == field_id:
                return value
        return None

    def get_value(self, field_id: str) -> InspectionValue:
        """Stored value for ``field_id``, or a pending default when untouched."""
        stored = self.find_value(field_id)
        if stored is not None:
            return stored
        return InspectionValue(field_id=field_id)

    def update_value(self, field_id: str, new_value: Any, definition: FieldDefinition) -> InspectionValue:
        value = coerce_field_value(definition, new_value)
        inspection_value = InspectionValue(
            field_id=field_id,
            value=value,
            status=field_status(definition, value),
        )
        self.values = [existing for existing in self.values if existing.field_id != field_id]
        self.values.append(inspection_value)
        return inspection_value

    def update_field(self, field_id: str, new_value: Any) -> InspectionValue | None:
        definition = self.get_field(field_id)
        if definition is None:
            logger.debug("Ignoring value for unknown field id %s", field_id)
            return None
        return self.update_value(field_id, new_value, definition)

    def reset(self) -> None:
        self.values = []

    def stats(self) -> InspectionStats:
        field_ids = {definition.id for definition in self.fields}
        tracked = [value for value in self.values if value.field_id in field_ids]
        return InspectionStats(
            total=len(self.fields),
            completed=sum(1 for value in tracked if value.status != STATUS_PENDING),
            passed=sum(1 for value in tracked if value.status == STATUS_PASS),
            failed=sum(1 for value in tracked if value.status == STATUS_FAIL),
        )

    def release_gate(self) -> ReleaseGate:
        stats = self.stats()
        return ReleaseGate(
            has_failures=stats.failed > 0,
            complete=stats.all_inspected and stats.total > 0,
        )

    def rows(self) -> list[dict[str, Any]]:
        rows = []
        for index, definition in enumerate(self.fields, start=1):
            row = definition.to_dict()
            row["index"] = index
            row.update(self.get_value(definition.id).to_dict())
            rows.append(row)
        return rows
