"""Health status codes, results and resource kind helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Tuple

DEPLOYMENT_KIND = "Deployment"
STATEFULSET_KIND = "StatefulSet"
REPLICASET_KIND = "ReplicaSet"
DAEMONSET_KIND = "DaemonSet"
INGRESS_KIND = "Ingress"
APISERVICE_KIND = "APIService"
SERVICE_KIND = "Service"
PERSISTENT_VOLUME_CLAIM_KIND = "PersistentVolumeClaim"
POD_KIND = "Pod"
JOB_KIND = "Job"
HORIZONTAL_POD_AUTOSCALER_KIND = "HorizontalPodAutoscaler"


class HealthStatusCode(str, Enum):
    """Health of a resource."""

    # Health assessment failed and actual health status is unknown.
    UNKNOWN = "Unknown"
    # Not healthy yet but still has a chance to become healthy.
    PROGRESSING = "Progressing"
    HEALTHY = "Healthy"
    # Suspended or paused, e.g. a suspended CronJob.
    SUSPENDED = "Suspended"
    # Failed, or could not become healthy in time.
    DEGRADED = "Degraded"
    # Missing from the cluster.
    MISSING = "Missing"


@dataclass
class HealthStatus:
    """Result of a health assessment."""

    status: HealthStatusCode
    message: str = ""


class HealthCheckError(Exception):
    """Raised when a resource's health cannot be assessed."""


# Most healthy first.
_HEALTH_ORDER = (
    HealthStatusCode.HEALTHY,
    HealthStatusCode.SUSPENDED,
    HealthStatusCode.PROGRESSING,
    HealthStatusCode.MISSING,
    HealthStatusCode.DEGRADED,
    HealthStatusCode.UNKNOWN,
)


def _rank(code: Any) -> int:
    for index, known in enumerate(_HEALTH_ORDER):
        if code == known:
            return index
    return 0


def is_worse(current: Any, new: Any) -> bool:
    """Return whether ``new`` is a worse health condition than ``current``."""
    return _rank(new) > _rank(current)


def group_version_kind(obj: Mapping[str, Any]) -> Tuple[str, str, str]:
    """Return ``(group, version, kind)`` of an unstructured object.

    An unparseable apiVersion gives three empty strings.
    """
    api_version = obj.get("apiVersion")
    kind = obj.get("kind")
    if not isinstance(api_version, str):
        api_version = ""
    if not isinstance(kind, str):
        kind = ""
    if not api_version:
        return "", "", kind
    parts = api_version.split("/")
    if len(parts) == 1:
        return "", api_version, kind
    if len(parts) == 2:
        return parts[0], parts[1], kind
    return "", "", ""