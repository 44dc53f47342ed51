"""Health checks for HorizontalPodAutoscalers and APIServices."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Tuple

from gitopskit.healthstatus import (
    APISERVICE_KIND,
    HORIZONTAL_POD_AUTOSCALER_KIND,
    HealthCheckError,
    HealthStatus,
    HealthStatusCode,
    group_version_kind,
)

_HPA_VERSIONS = ("v1", "v2beta1", "v2beta2", "v2")
_APISERVICE_VERSIONS = ("v1", "v1beta1")
_CONDITIONS_ANNOTATION = "autoscaling.alpha.kubernetes.io/conditions"
_WAITING_TO_AUTOSCALE = "Waiting to Autoscale"

_DEGRADED_STATES = frozenset(
    {
        ("AbleToScale", "FailedGetScale"),
        ("AbleToScale", "FailedUpdateScale"),
        ("ScalingActive", "FailedGetResourceMetric"),
        ("ScalingActive", "InvalidSelector"),
    }
)
_HEALTHY_CONDITION_TYPES = ("AbleToScale", "ScalingLimited")


class _ConversionError(ValueError):
    pass


@dataclass(frozen=True)
class _Condition:
    type: str = ""
    reason: str = ""
    message: str = ""
    status: str = ""

    @classmethod
    def parse(cls, raw: Any, case_insensitive: bool = False) -> "_Condition":
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise _ConversionError(f"condition must be an object, got {type(raw).__name__}")
        values = {}
        for key, value in raw.items():
            name = key.lower() if case_insensitive else key
            if name in ("type", "reason", "message", "status"):
                if value is not None and not isinstance(value, str):
                    raise _ConversionError(
                        f"condition field {key!r} must be a string, got {type(value).__name__}"
                    )
                values[name] = value or ""
        return cls(**values)

    def is_degraded(self) -> bool:
        return (self.type, self.reason) in _DEGRADED_STATES

    def is_healthy(self) -> bool:
        return self.type in _HEALTHY_CONDITION_TYPES and self.status == "True"


def _format_gvk(gvk: Tuple[str, str, str]) -> str:
    group, version, kind = gvk
    return f"{group}/{version}, Kind={kind}"


def _section(obj: Mapping[str, Any], *path: str) -> Mapping[str, Any]:
    current = obj
    for key in path:
        value = current.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise _ConversionError(f"field {key!r} must be an object, got {type(value).__name__}")
        current = value
    return current


def _conditions(obj: Mapping[str, Any]) -> List[_Condition]:
    raw = _section(obj, "status").get("conditions")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise _ConversionError("field 'conditions' must be a list")
    return [_Condition.parse(item) for item in raw]


def _waiting_to_autoscale() -> HealthStatus:
    return HealthStatus(HealthStatusCode.PROGRESSING, _WAITING_TO_AUTOSCALE)


def _check_conditions(conditions: Iterable[_Condition]) -> HealthStatus:
    for condition in conditions:
        if condition.is_degraded():
            return HealthStatus(HealthStatusCode.DEGRADED, condition.message)
        if condition.is_healthy():
            return HealthStatus(HealthStatusCode.HEALTHY, condition.message)
    return _waiting_to_autoscale()


def get_hpa_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of a HorizontalPodAutoscaler of any supported version."""
    gvk = group_version_kind(obj)
    group, version, kind = gvk
    if group != "autoscaling" or kind != HORIZONTAL_POD_AUTOSCALER_KIND or version not in _HPA_VERSIONS:
        raise HealthCheckError(f"unsupported HPA GVK: {_format_gvk(gvk)}")
    try:
        if version == "v1":
            return _v1_hpa_health(obj)
        return _check_conditions(_conditions(obj))
    except _ConversionError as exc:
        raise HealthCheckError(f"failed to convert unstructured HPA to typed: {exc}") from exc


def _v1_hpa_health(obj: Mapping[str, Any]) -> HealthStatus:
    annotations = _section(obj, "metadata", "annotations")
    for key, value in annotations.items():
        if value is not None and not isinstance(value, str):
            raise _ConversionError(f"annotation {key!r} must be a string")
    annotation = annotations.get(_CONDITIONS_ANNOTATION)
    if annotation is None:
        return _waiting_to_autoscale()
    try:
        raw = json.loads(annotation)
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise _ConversionError(f"expected a list of conditions, got {type(raw).__name__}")
        conditions = [_Condition.parse(item, case_insensitive=True) for item in raw]
    except (ValueError, _ConversionError) as exc:
        raise HealthCheckError(f"failed to convert conditions annotation to typed: {exc}") from exc
    if not conditions:
        return _waiting_to_autoscale()
    return _check_conditions(conditions)


def get_apiservice_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of an apiregistration.k8s.io APIService."""
    gvk = group_version_kind(obj)
    group, version, kind = gvk
    if (
        group != "apiregistration.k8s.io"
        or kind != APISERVICE_KIND
        or version not in _APISERVICE_VERSIONS
    ):
        raise HealthCheckError(f"unsupported APIService GVK: {_format_gvk(gvk)}")
    try:
        conditions = _conditions(obj)
    except _ConversionError as exc:
        raise HealthCheckError(
            f"failed to convert unstructured APIService to typed: {exc}"
        ) from exc
    for condition in conditions:
        if condition.type == "Available":
            code = (
                HealthStatusCode.HEALTHY
                if condition.status == "True"
                else HealthStatusCode.PROGRESSING
            )
            return HealthStatus(code, f"{condition.reason}: {condition.message}")
    return HealthStatus(HealthStatusCode.PROGRESSING, "Waiting to be processed")