"""Managed fields entries and their decoded per-manager field sets."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

APPLY = "Apply"
UPDATE = "Update"
FIELDS_V1 = "FieldsV1"

_SET_PREFIXES = ("f", "k", "v", "i")


class ManagedFieldsError(ValueError):
    """Raised when managed fields cannot be decoded or encoded."""


def _go_json(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in (
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("&", "\\u0026"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _parse_time(value: str) -> datetime:
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return _utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise ManagedFieldsError(f"invalid time {value!r}") from exc


def _format_time(moment: datetime) -> str:
    return _utc(moment).strftime("%Y-%m-%dT%H:%M:%SZ")


def _unix(moment: Optional[datetime]) -> int:
    return 0 if moment is None else int(_utc(moment).timestamp())


@dataclass
class ManagedFieldsEntry:
    """One entry of an object's metadata.managedFields."""

    manager: str = ""
    operation: str = ""
    api_version: str = ""
    time: Optional[datetime] = None
    fields_type: str = ""
    fields_v1: Optional[Dict[str, Any]] = None
    subresource: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ManagedFieldsEntry":
        """Build an entry from its wire form."""
        if not isinstance(data, Mapping):
            raise ManagedFieldsError(f"managed fields entry must be an object, got {type(data).__name__}")
        values: Dict[str, Any] = {}
        for wire, name in (
            ("manager", "manager"),
            ("operation", "operation"),
            ("apiVersion", "api_version"),
            ("fieldsType", "fields_type"),
            ("subresource", "subresource"),
        ):
            value = data.get(wire)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ManagedFieldsError(f"field {wire!r} must be a string, got {type(value).__name__}")
            values[name] = value
        raw_time = data.get("time")
        if raw_time is not None:
            if not isinstance(raw_time, str):
                raise ManagedFieldsError("field 'time' must be a string")
            values["time"] = _parse_time(raw_time)
        fields_v1 = data.get("fieldsV1")
        if fields_v1 is not None:
            if not isinstance(fields_v1, dict):
                raise ManagedFieldsError("field 'fieldsV1' must be an object")
            values["fields_v1"] = copy.deepcopy(fields_v1)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire form, leaving out empty fields."""
        data: Dict[str, Any] = {}
        if self.manager:
            data["manager"] = self.manager
        if self.operation:
            data["operation"] = self.operation
        if self.api_version:
            data["apiVersion"] = self.api_version
        if self.time is not None:
            data["time"] = _format_time(self.time)
        if self.fields_type:
            data["fieldsType"] = self.fields_type
        if self.fields_v1 is not None:
            data["fieldsV1"] = copy.deepcopy(self.fields_v1)
        if self.subresource:
            data["subresource"] = self.subresource
        return data


@dataclass
class VersionedSet:
    """Set of field paths owned by a manager at an API version."""

    fields: Dict[str, Any]
    api_version: str
    applied: bool


@dataclass
class Managed:
    """Field sets and last operation times, keyed by manager identifier."""

    fields: Dict[str, VersionedSet] = field(default_factory=dict)
    times: Dict[str, Optional[datetime]] = field(default_factory=dict)


def _validate_set(node: Any) -> None:
    if not isinstance(node, dict):
        raise ManagedFieldsError(f"expected a JSON object in field set, got {type(node).__name__}")
    for key, child in node.items():
        if key == ".":
            _validate_set(child)
            continue
        prefix, sep, rest = key.partition(":")
        if not sep or prefix not in _SET_PREFIXES:
            raise ManagedFieldsError(f"unknown path element key {key!r}")
        if prefix in ("k", "v"):
            try:
                parsed = json.loads(rest)
            except ValueError as exc:
                raise ManagedFieldsError(f"invalid path element {key!r}: {exc}") from exc
            if prefix == "k" and not isinstance(parsed, dict):
                raise ManagedFieldsError(f"key path element {key!r} must hold an object")
        elif prefix == "i":
            try:
                int(rest)
            except ValueError as exc:
                raise ManagedFieldsError(f"invalid index in path element {key!r}") from exc
        _validate_set(child)


def _fields_to_set(fields: Mapping[str, Any]) -> Dict[str, Any]:
    _validate_set(fields)
    return copy.deepcopy(dict(fields))


def _set_to_fields(field_set: Mapping[str, Any]) -> Dict[str, Any]:
    return copy.deepcopy(dict(field_set))


def build_manager_identifier(entry: ManagedFieldsEntry) -> str:
    """Return the key that identifies the manager of an entry.

    Fields type, fields and time never take part; the API version is left
    out for appliers so that every apply maps to the same manager.
    """
    stripped = replace(entry, fields_type="", fields_v1=None, time=None)
    if entry.operation == APPLY:
        stripped.api_version = ""
    return _go_json(stripped.to_dict())


def _decode_versioned_set(entry: ManagedFieldsEntry) -> VersionedSet:
    fields = entry.fields_v1 if entry.fields_v1 is not None else {}
    try:
        field_set = _fields_to_set(fields)
    except ManagedFieldsError as exc:
        raise ManagedFieldsError(f"error decoding set: {exc}") from exc
    return VersionedSet(field_set, entry.api_version, entry.operation == APPLY)


def decode_managed_fields(
    entries: Iterable[Union[ManagedFieldsEntry, Mapping[str, Any]]]
) -> Managed:
    """Decode wire-format managed fields entries into per-manager field sets."""
    managed = Managed()
    for index, raw in enumerate(entries or ()):
        entry = raw if isinstance(raw, ManagedFieldsEntry) else ManagedFieldsEntry.from_dict(raw)
        if entry.operation not in (APPLY, UPDATE):
            raise ManagedFieldsError("operation must be `Apply` or `Update`")
        if not entry.api_version:
            raise ManagedFieldsError("apiVersion must not be empty")
        if entry.fields_type == "":
            raise ManagedFieldsError(f"missing fieldsType in managed fields entry {index}")
        if entry.fields_type != FIELDS_V1:
            raise ManagedFieldsError(
                f"invalid fieldsType {json.dumps(entry.fields_type)} in managed fields entry {index}"
            )
        manager = build_manager_identifier(entry)
        try:
            managed.fields[manager] = _decode_versioned_set(entry)
        except ManagedFieldsError as exc:
            raise ManagedFieldsError(f"error decoding versioned set from {entry}: {exc}") from exc
        managed.times[manager] = entry.time
    return managed


def _encode_versioned_set(manager: str, versioned_set: VersionedSet) -> ManagedFieldsEntry:
    try:
        identity = json.loads(manager)
    except ValueError as exc:
        raise ManagedFieldsError(f"error unmarshalling manager identifier {manager}: {exc}") from exc
    try:
        entry = ManagedFieldsEntry.from_dict(identity)
    except ManagedFieldsError as exc:
        raise ManagedFieldsError(f"error unmarshalling manager identifier {manager}: {exc}") from exc
    entry.api_version = versioned_set.api_version
    if versioned_set.applied:
        entry.operation = APPLY
    entry.fields_type = FIELDS_V1
    entry.fields_v1 = _set_to_fields(versioned_set.fields)
    return entry


def encode_managed_fields(managed: Managed) -> Optional[List[ManagedFieldsEntry]]:
    """Encode per-manager field sets into sorted wire-format entries; None if empty."""
    if not managed.fields:
        return None
    encoded = []
    for manager, versioned_set in managed.fields.items():
        try:
            entry = _encode_versioned_set(manager, versioned_set)
        except ManagedFieldsError as exc:
            raise ManagedFieldsError(f"error encoding versioned set for {manager}: {exc}") from exc
        if manager in managed.times:
            entry.time = managed.times[manager]
        encoded.append(entry)
    return sort_managed_fields_entries(encoded)


def sort_managed_fields_entries(entries: Iterable[ManagedFieldsEntry]) -> List[ManagedFieldsEntry]:
    """Sort by operation, time, manager, API version and subresource."""
    return sorted(
        entries,
        key=lambda e: (e.operation, _unix(e.time), e.manager, e.api_version, e.subresource),
    )