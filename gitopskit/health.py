"""Health assessment of Kubernetes resources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from gitopskit.health_pod import get_job_health, get_pod_health
from gitopskit.health_scaling import get_apiservice_health, get_hpa_health
from gitopskit.health_services import (
    get_argo_workflow_health,
    get_ingress_health,
    get_pvc_health,
    get_service_health,
)
from gitopskit.health_workloads import (
    get_daemonset_health,
    get_deployment_health,
    get_replicaset_health,
    get_statefulset_health,
)
from gitopskit.healthstatus import (
    APISERVICE_KIND,
    DAEMONSET_KIND,
    DEPLOYMENT_KIND,
    HORIZONTAL_POD_AUTOSCALER_KIND,
    INGRESS_KIND,
    JOB_KIND,
    PERSISTENT_VOLUME_CLAIM_KIND,
    POD_KIND,
    REPLICASET_KIND,
    SERVICE_KIND,
    STATEFULSET_KIND,
    HealthCheckError,
    HealthStatus,
    HealthStatusCode,
    group_version_kind,
)

HealthCheck = Callable[[Mapping[str, Any]], HealthStatus]

_HEALTH_CHECKS: Dict[Tuple[str, str], HealthCheck] = {
    ("apps", DEPLOYMENT_KIND): get_deployment_health,
    ("apps", STATEFULSET_KIND): get_statefulset_health,
    ("apps", REPLICASET_KIND): get_replicaset_health,
    ("apps", DAEMONSET_KIND): get_daemonset_health,
    ("extensions", INGRESS_KIND): get_ingress_health,
    ("argoproj.io", "Workflow"): get_argo_workflow_health,
    ("apiregistration.k8s.io", APISERVICE_KIND): get_apiservice_health,
    ("networking.k8s.io", INGRESS_KIND): get_ingress_health,
    ("", SERVICE_KIND): get_service_health,
    ("", PERSISTENT_VOLUME_CLAIM_KIND): get_pvc_health,
    ("", POD_KIND): get_pod_health,
    ("batch", JOB_KIND): get_job_health,
    ("autoscaling", HORIZONTAL_POD_AUTOSCALER_KIND): get_hpa_health,
}


class HealthOverride(ABC):
    """Custom health assessment that takes precedence over the built-in checks."""

    @abstractmethod
    def get_resource_health(self, obj: Mapping[str, Any]) -> Optional[HealthStatus]:
        """Return a health status, or None to fall back to the built-in check."""


def get_health_check_func(group: str, kind: str) -> Optional[HealthCheck]:
    """Return the built-in health check for a group and kind, or None."""
    return _HEALTH_CHECKS.get((group, kind))


def _failure(message: str, cause: BaseException) -> HealthCheckError:
    error = HealthCheckError(message)
    error.health = HealthStatus(HealthStatusCode.UNKNOWN, message)
    error.__cause__ = cause
    return error


def _pending_deletion(obj: Mapping[str, Any]) -> bool:
    metadata = obj.get("metadata")
    return isinstance(metadata, dict) and bool(metadata.get("deletionTimestamp"))


def get_resource_health(
    obj: Mapping[str, Any], health_override: Optional[HealthOverride] = None
) -> Optional[HealthStatus]:
    """Return the health of a resource, or None if no check applies.

    A failed assessment raises HealthCheckError whose ``health`` attribute
    holds an Unknown status carrying the error message.
    """
    if _pending_deletion(obj):
        return HealthStatus(HealthStatusCode.PROGRESSING, "Pending deletion")

    if health_override is not None:
        try:
            health = health_override.get_resource_health(obj)
        except Exception as exc:
            raise _failure(str(exc), exc) from exc
        if health is not None:
            return health

    group, _version, kind = group_version_kind(obj)
    check = get_health_check_func(group, kind)
    if check is None:
        return None
    try:
        return check(obj)
    except HealthCheckError as exc:
        raise _failure(str(exc), exc) from exc