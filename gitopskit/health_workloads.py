"""Health checks for Deployments, ReplicaSets, DaemonSets and StatefulSets."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Tuple

from gitopskit.healthstatus import (
    DAEMONSET_KIND,
    DEPLOYMENT_KIND,
    REPLICASET_KIND,
    STATEFULSET_KIND,
    HealthCheckError,
    HealthStatus,
    HealthStatusCode,
    group_version_kind,
)


class _ConversionError(ValueError):
    pass


def _format_gvk(gvk: Tuple[str, str, str]) -> str:
    group, version, kind = gvk
    return f"{group}/{version}, Kind={kind}"


def _quote(text: str) -> str:
    return json.dumps(text)


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


def _opt_int(section: Mapping[str, Any], key: str) -> Optional[int]:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise _ConversionError(f"field {key!r} must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise _ConversionError(f"field {key!r} must be an integer, got {type(value).__name__}")


def _int(section: Mapping[str, Any], key: str) -> int:
    value = _opt_int(section, key)
    return 0 if value is None else value


def _str(section: Mapping[str, Any], key: str) -> str:
    value = section.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _ConversionError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _bool(section: Mapping[str, Any], key: str) -> bool:
    value = section.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise _ConversionError(f"field {key!r} must be a boolean, got {type(value).__name__}")
    return value


def _condition(status: Mapping[str, Any], cond_type: str) -> Optional[Mapping[str, str]]:
    conditions = status.get("conditions")
    if conditions is None:
        return None
    if not isinstance(conditions, list):
        raise _ConversionError("field 'conditions' must be a list")
    found = None
    for raw in conditions:
        if not isinstance(raw, dict):
            raise _ConversionError("condition must be an object")
        cond = {k: _str(raw, k) for k in ("type", "status", "reason", "message")}
        if found is None and cond["type"] == cond_type:
            found = cond
    return found


def _check_gvk(obj: Mapping[str, Any], group: str, version: str, kind: str) -> None:
    gvk = group_version_kind(obj)
    if gvk != (group, version, kind):
        raise HealthCheckError(f"unsupported {kind} GVK: {_format_gvk(gvk)}")


def _converted(kind: str, check, obj: Mapping[str, Any]) -> HealthStatus:
    try:
        return check(obj)
    except _ConversionError as exc:
        raise HealthCheckError(f"failed to convert unstructured {kind} to typed: {exc}") from exc


def get_deployment_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of an apps/v1 Deployment."""
    _check_gvk(obj, "apps", "v1", DEPLOYMENT_KIND)
    return _converted(DEPLOYMENT_KIND, _deployment_health, obj)


def _deployment_health(obj: Mapping[str, Any]) -> HealthStatus:
    metadata = _section(obj, "metadata")
    spec = _section(obj, "spec")
    status = _section(obj, "status")
    name = _str(metadata, "name")
    generation = _int(metadata, "generation")
    observed = _int(status, "observedGeneration")
    spec_replicas = _opt_int(spec, "replicas")
    replicas = _int(status, "replicas")
    updated = _int(status, "updatedReplicas")
    available = _int(status, "availableReplicas")
    condition = _condition(status, "Progressing")

    if _bool(spec, "paused"):
        return HealthStatus(HealthStatusCode.SUSPENDED, "Deployment is paused")
    if generation > observed:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            "Waiting for rollout to finish: observed deployment generation less than desired generation",
        )
    if condition is not None and condition["reason"] == "ProgressDeadlineExceeded":
        return HealthStatus(
            HealthStatusCode.DEGRADED,
            f"Deployment {_quote(name)} exceeded its progress deadline",
        )
    if spec_replicas is not None and updated < spec_replicas:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"Waiting for rollout to finish: {updated} out of {spec_replicas} new replicas have been updated...",
        )
    if replicas > updated:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"Waiting for rollout to finish: {replicas - updated} old replicas are pending termination...",
        )
    if available < updated:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"Waiting for rollout to finish: {available} of {updated} updated replicas are available...",
        )
    return HealthStatus(HealthStatusCode.HEALTHY)


def get_replicaset_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of an apps/v1 ReplicaSet."""
    _check_gvk(obj, "apps", "v1", REPLICASET_KIND)
    return _converted(REPLICASET_KIND, _replicaset_health, obj)


def _replicaset_health(obj: Mapping[str, Any]) -> HealthStatus:
    metadata = _section(obj, "metadata")
    spec = _section(obj, "spec")
    status = _section(obj, "status")
    generation = _int(metadata, "generation")
    observed = _int(status, "observedGeneration")
    spec_replicas = _opt_int(spec, "replicas")
    available = _int(status, "availableReplicas")
    condition = _condition(status, "ReplicaFailure")

    if generation > observed:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            "Waiting for rollout to finish: observed replica set generation less than desired generation",
        )
    if condition is not None and condition["status"] == "True":
        return HealthStatus(HealthStatusCode.DEGRADED, condition["message"])
    if spec_replicas is not None and available < spec_replicas:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"Waiting for rollout to finish: {available} out of {spec_replicas} new replicas are available...",
        )
    return HealthStatus(HealthStatusCode.HEALTHY)


def get_daemonset_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of an apps/v1 DaemonSet."""
    _check_gvk(obj, "apps", "v1", DAEMONSET_KIND)
    return _converted(DAEMONSET_KIND, _daemonset_health, obj)


def _daemonset_health(obj: Mapping[str, Any]) -> HealthStatus:
    metadata = _section(obj, "metadata")
    status = _section(obj, "status")
    strategy = _section(obj, "spec", "updateStrategy")
    name = _str(metadata, "name")
    generation = _int(metadata, "generation")
    observed = _int(status, "observedGeneration")
    updated = _int(status, "updatedNumberScheduled")
    desired = _int(status, "desiredNumberScheduled")
    available = _int(status, "numberAvailable")
    strategy_type = _str(strategy, "type")

    if generation > observed:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            "Waiting for rollout to finish: observed daemon set generation less than desired generation",
        )
    if strategy_type == "OnDelete":
        return HealthStatus(
            HealthStatusCode.HEALTHY,
            f"daemon set {updated} out of {desired} new pods have been updated",
        )
    if updated < desired:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"Waiting for daemon set {_quote(name)} rollout to finish: "
            f"{updated} out of {desired} new pods have been updated...",
        )
    if available < desired:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"Waiting for daemon set {_quote(name)} rollout to finish: "
            f"{available} of {desired} updated pods are available...",
        )
    return HealthStatus(HealthStatusCode.HEALTHY)


def get_statefulset_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of an apps/v1 StatefulSet."""
    _check_gvk(obj, "apps", "v1", STATEFULSET_KIND)
    return _converted(STATEFULSET_KIND, _statefulset_health, obj)


def _statefulset_health(obj: Mapping[str, Any]) -> HealthStatus:
    metadata = _section(obj, "metadata")
    spec = _section(obj, "spec")
    status = _section(obj, "status")
    strategy = _section(spec, "updateStrategy")
    rolling_raw = strategy.get("rollingUpdate")
    rolling = _section(strategy, "rollingUpdate")
    generation = _int(metadata, "generation")
    observed = _int(status, "observedGeneration")
    spec_replicas = _opt_int(spec, "replicas")
    ready = _int(status, "readyReplicas")
    updated = _int(status, "updatedReplicas")
    current = _int(status, "currentReplicas")
    update_revision = _str(status, "updateRevision")
    current_revision = _str(status, "currentRevision")
    strategy_type = _str(strategy, "type")
    partition = _opt_int(rolling, "partition")

    if observed == 0 or generation > observed:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            "Waiting for statefulset spec update to be observed...",
        )
    if spec_replicas is not None and ready < spec_replicas:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"Waiting for {spec_replicas - ready} pods to be ready...",
        )
    if strategy_type == "RollingUpdate" and rolling_raw is not None:
        if spec_replicas is not None and partition is not None:
            target = spec_replicas - partition
            if updated < target:
                return HealthStatus(
                    HealthStatusCode.PROGRESSING,
                    f"Waiting for partitioned roll out to finish: {updated} out of {target} "
                    "new pods have been updated...",
                )
        return HealthStatus(
            HealthStatusCode.HEALTHY,
            f"partitioned roll out complete: {updated} new pods have been updated...",
        )
    if strategy_type == "OnDelete":
        return HealthStatus(HealthStatusCode.HEALTHY, f"statefulset has {ready} ready pods")
    if update_revision != current_revision:
        return HealthStatus(
            HealthStatusCode.PROGRESSING,
            f"waiting for statefulset rolling update to complete {updated} pods "
            f"at revision {update_revision}...",
        )
    return HealthStatus(
        HealthStatusCode.HEALTHY,
        f"statefulset rolling update complete {current} pods at revision {current_revision}...",
    )