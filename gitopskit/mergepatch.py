"""JSON merge patches and pruning of fields that only the live object carries."""

from __future__ import annotations

import copy
from typing import Any, Dict, List


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "object"
    raise TypeError(f"unsupported JSON value of type {type(value).__name__}")


def _same(a: Any, b: Any) -> bool:
    kind = _kind(a)
    if kind != _kind(b):
        return False
    if kind == "list":
        return len(a) == len(b) and all(_same(x, y) for x, y in zip(a, b))
    if kind == "object":
        return a.keys() == b.keys() and all(_same(a[k], b[k]) for k in a)
    return a == b


def _apply(target: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict):
            current = target.get(key)
            target[key] = _apply(current if isinstance(current, dict) else {}, value)
        else:
            target[key] = copy.deepcopy(value)
    return target


def merge_patch(document: Any, patch: Any) -> Any:
    """Apply a JSON merge patch to ``document`` and return the result."""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    target = copy.deepcopy(document) if isinstance(document, dict) else {}
    return _apply(target, patch)


def _diff(original: Dict[str, Any], modified: Dict[str, Any]) -> Dict[str, Any]:
    patch: Dict[str, Any] = {}
    for key, new in modified.items():
        if key not in original:
            patch[key] = copy.deepcopy(new)
            continue
        old = original[key]
        if isinstance(old, dict) and isinstance(new, dict):
            nested = _diff(old, new)
            if nested:
                patch[key] = nested
        elif not _same(old, new):
            patch[key] = copy.deepcopy(new)
    for key in original:
        if key not in modified:
            patch[key] = None
    return patch


def create_merge_patch(original: Any, modified: Any) -> Any:
    """Return a JSON merge patch that turns ``original`` into ``modified``."""
    if not isinstance(original, dict) or not isinstance(modified, dict):
        return copy.deepcopy(modified)
    return _diff(original, modified)


def _keep_or_delete_null(patch: Dict[str, Any], keep_null: bool) -> Dict[str, Any]:
    filtered: Dict[str, Any] = {}
    for key, value in patch.items():
        if value is None:
            if keep_null:
                filtered[key] = None
        elif isinstance(value, dict):
            # An explicitly empty map is a value, not an empty patch.
            if not value:
                if not keep_null:
                    filtered[key] = value
                continue
            nested = _keep_or_delete_null(value, keep_null)
            if nested:
                filtered[key] = nested
        else:
            _kind(value)
            if not keep_null:
                filtered[key] = value
    return filtered


def _merge_patches(first: Dict[str, Any], second: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(first)
    for key, value in second.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = _merge_patches(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def create_three_way_merge_patch(
    original: Dict[str, Any], modified: Dict[str, Any], current: Dict[str, Any]
) -> Dict[str, Any]:
    """Return a merge patch that brings ``current`` to ``modified``.

    Fields are deleted only if they were in ``original`` and are gone from
    ``modified``; fields that only ``current`` has are kept.
    """
    for name, value in (("original", original), ("modified", modified), ("current", current)):
        if not isinstance(value, dict):
            raise TypeError(f"{name} must be a JSON object, got {type(value).__name__}")
    additions = _keep_or_delete_null(_diff(current, modified), keep_null=False)
    deletions = _keep_or_delete_null(_diff(original, modified), keep_null=True)
    return _merge_patches(deletions, additions)


def _remove_fields(config: Any, live: Any) -> Any:
    if isinstance(config, dict) and isinstance(live, dict):
        return remove_map_fields(config, live)
    if isinstance(config, list) and isinstance(live, list):
        return remove_list_fields(config, live)
    return live


def remove_map_fields(config: Dict[str, Any], live: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``live`` restricted to the fields that ``config`` also has."""
    result: Dict[str, Any] = {}
    for key, config_value in config.items():
        if key not in live:
            continue
        live_value = live[key]
        if live_value is not None:
            live_value = _remove_fields(config_value, live_value)
        result[key] = live_value
    return result


def remove_list_fields(config: List[Any], live: List[Any]) -> List[Any]:
    """Prune each item of ``live`` against the item of ``config`` at the same index.

    Items past the end of ``config`` are kept as they are so they still show
    up in a diff.
    """
    result = []
    for index, live_value in enumerate(live):
        if index < len(config) and live_value is not None:
            live_value = _remove_fields(config[index], live_value)
        result.append(live_value)
    return result