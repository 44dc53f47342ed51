"""Health checks for Ingresses, PersistentVolumeClaims, Services and Argo Workflows."""

from __future__ import annotations

from typing import Any, Mapping, Tuple

from gitopskit.healthstatus import (
    PERSISTENT_VOLUME_CLAIM_KIND,
    SERVICE_KIND,
    HealthCheckError,
    HealthStatus,
    HealthStatusCode,
    group_version_kind,
)

_PVC_PHASES = {
    "Lost": HealthStatusCode.DEGRADED,
    "Pending": HealthStatusCode.PROGRESSING,
    "Bound": HealthStatusCode.HEALTHY,
}

_WORKFLOW_PHASES = {
    "": HealthStatusCode.PROGRESSING,
    "Pending": HealthStatusCode.PROGRESSING,
    "Running": HealthStatusCode.PROGRESSING,
    "Succeeded": HealthStatusCode.HEALTHY,
    "Failed": HealthStatusCode.DEGRADED,
    "Error": HealthStatusCode.DEGRADED,
}


class _ConversionError(ValueError):
    pass


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


def _str(section: Mapping[str, Any], key: str) -> str:
    value = section.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _ConversionError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _list(section: Mapping[str, Any], key: str) -> list:
    value = section.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise _ConversionError(f"field {key!r} must be a list, got {type(value).__name__}")
    return value


def _check_gvk(obj: Mapping[str, Any], group: str, version: str, kind: str) -> None:
    gvk = group_version_kind(obj)
    if gvk != (group, version, kind):
        raise HealthCheckError(f"unsupported {kind} GVK: {_format_gvk(gvk)}")


def get_ingress_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Healthy once the ingress has been given a load balancer address."""
    current: Any = obj
    for key in ("status", "loadBalancer", "ingress"):
        current = current.get(key) if isinstance(current, dict) else None
    ingresses = current if isinstance(current, list) else []
    if ingresses:
        return HealthStatus(HealthStatusCode.HEALTHY)
    return HealthStatus(HealthStatusCode.PROGRESSING)


def get_pvc_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of a v1 PersistentVolumeClaim from its phase."""
    _check_gvk(obj, "", "v1", PERSISTENT_VOLUME_CLAIM_KIND)
    try:
        phase = _str(_section(obj, "status"), "phase")
    except _ConversionError as exc:
        raise HealthCheckError(
            f"failed to convert unstructured PersistentVolumeClaim to typed: {exc}"
        ) from exc
    return HealthStatus(_PVC_PHASES.get(phase, HealthStatusCode.UNKNOWN))


def get_service_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of a v1 Service; only LoadBalancers can be progressing."""
    _check_gvk(obj, "", "v1", SERVICE_KIND)
    try:
        service_type = _str(_section(obj, "spec"), "type")
        ingress = _list(_section(obj, "status", "loadBalancer"), "ingress")
    except _ConversionError as exc:
        raise HealthCheckError(f"failed to convert unstructured Service to typed: {exc}") from exc
    if service_type == "LoadBalancer" and not ingress:
        return HealthStatus(HealthStatusCode.PROGRESSING)
    return HealthStatus(HealthStatusCode.HEALTHY)


def get_argo_workflow_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess an Argo Workflow of any API version from its status phase and message."""
    try:
        status = _section(obj, "status")
        phase = _str(status, "phase")
        message = _str(status, "message")
    except _ConversionError as exc:
        raise HealthCheckError(str(exc)) from exc
    return HealthStatus(_WORKFLOW_PHASES.get(phase, HealthStatusCode.UNKNOWN), message)