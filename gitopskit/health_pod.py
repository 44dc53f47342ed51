"""Health checks for Pods and Jobs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from gitopskit.healthstatus import (
    JOB_KIND,
    POD_KIND,
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


def _present(section: Mapping[str, Any], key: str) -> bool:
    value = section.get(key)
    if value is None:
        return False
    if not isinstance(value, dict):
        raise _ConversionError(f"field {key!r} must be an object, got {type(value).__name__}")
    return True


def _str(section: Mapping[str, Any], key: str) -> str:
    value = section.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _ConversionError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _int(section: Mapping[str, Any], key: str) -> int:
    value = section.get(key)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise _ConversionError(f"field {key!r} must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise _ConversionError(f"field {key!r} must be an integer, got {type(value).__name__}")


def _objects(section: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = section.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise _ConversionError(f"field {key!r} must be a list, got {type(value).__name__}")
    items = []
    for item in value:
        if item is None:
            items.append({})
        elif isinstance(item, dict):
            items.append(item)
        else:
            raise _ConversionError(f"items of {key!r} must be objects, got {type(item).__name__}")
    return items


def _check_gvk(obj: Mapping[str, Any], group: str, version: str, kind: str) -> None:
    gvk = group_version_kind(obj)
    if gvk != (group, version, kind):
        raise HealthCheckError(f"unsupported {kind} GVK: {_format_gvk(gvk)}")


def _converted(kind: str, check, obj: Mapping[str, Any]) -> HealthStatus:
    try:
        return check(obj)
    except _ConversionError as exc:
        raise HealthCheckError(f"failed to convert unstructured {kind} to typed: {exc}") from exc


@dataclass(frozen=True)
class _ContainerStatus:
    name: str
    waiting: bool
    waiting_reason: str
    waiting_message: str
    terminated: bool
    terminated_message: str
    terminated_reason: str
    terminated_exit_code: int
    last_terminated: bool

    @classmethod
    def parse(cls, raw: Mapping[str, Any]) -> "_ContainerStatus":
        state = _section(raw, "state")
        waiting = _section(state, "waiting")
        terminated = _section(state, "terminated")
        last_state = _section(raw, "lastState")
        return cls(
            name=_str(raw, "name"),
            waiting=_present(state, "waiting"),
            waiting_reason=_str(waiting, "reason"),
            waiting_message=_str(waiting, "message"),
            terminated=_present(state, "terminated"),
            terminated_message=_str(terminated, "message"),
            terminated_reason=_str(terminated, "reason"),
            terminated_exit_code=_int(terminated, "exitCode"),
            last_terminated=_present(last_state, "terminated"),
        )

    def failure_message(self) -> str:
        if self.terminated:
            if self.terminated_message:
                return self.terminated_message
            if self.terminated_reason == "OOMKilled":
                return self.terminated_reason
            if self.terminated_exit_code != 0:
                return (
                    f"container {json.dumps(self.name)} failed with exit code "
                    f"{self.terminated_exit_code}"
                )
        return ""

    def is_erroring(self) -> bool:
        reason = self.waiting_reason
        return self.waiting and (
            reason.startswith("Err") or reason.endswith("Error") or reason.endswith("BackOff")
        )


def get_pod_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of a v1 Pod."""
    _check_gvk(obj, "", "v1", POD_KIND)
    return _converted(POD_KIND, _pod_health, obj)


def _pod_health(obj: Mapping[str, Any]) -> HealthStatus:
    spec = _section(obj, "spec")
    status = _section(obj, "status")
    restart_policy = _str(spec, "restartPolicy")
    phase = _str(status, "phase")
    message = _str(status, "message")
    containers = [_ContainerStatus.parse(c) for c in _objects(status, "containerStatuses")]
    init_containers = [
        _ContainerStatus.parse(c) for c in _objects(status, "initContainerStatuses")
    ]
    conditions = [
        (_str(c, "type"), _str(c, "status")) for c in _objects(status, "conditions")
    ]

    # Only for long-running pods: hook pods (OnFailure/Never) must not fail early
    # on transient errors such as ImagePullBackOff.
    if restart_policy == "Always":
        messages = [c.waiting_message for c in containers if c.is_erroring()]
        if messages:
            return HealthStatus(HealthStatusCode.DEGRADED, ", ".join(messages))

    if phase == "Pending":
        return HealthStatus(HealthStatusCode.PROGRESSING, message)
    if phase == "Succeeded":
        return HealthStatus(HealthStatusCode.HEALTHY, message)
    if phase == "Failed":
        if message:
            return HealthStatus(HealthStatusCode.DEGRADED, message)
        for container in init_containers + containers:
            failure = container.failure_message()
            if failure:
                return HealthStatus(HealthStatusCode.DEGRADED, failure)
        return HealthStatus(HealthStatusCode.DEGRADED, "")
    if phase == "Running":
        if restart_policy == "Always":
            if ("Ready", "True") in conditions:
                return HealthStatus(HealthStatusCode.HEALTHY, message)
            if any(c.last_terminated for c in containers):
                return HealthStatus(HealthStatusCode.DEGRADED, message)
            return HealthStatus(HealthStatusCode.PROGRESSING, message)
        if restart_policy in ("OnFailure", "Never"):
            # Finite-life pods are typically hooks: running means progressing.
            return HealthStatus(HealthStatusCode.PROGRESSING, message)
    return HealthStatus(HealthStatusCode.UNKNOWN, message)


def get_job_health(obj: Mapping[str, Any]) -> HealthStatus:
    """Assess the health of a batch/v1 Job."""
    _check_gvk(obj, "batch", "v1", JOB_KIND)
    return _converted(JOB_KIND, _job_health, obj)


def _job_health(obj: Mapping[str, Any]) -> HealthStatus:
    status = _section(obj, "status")
    failed = False
    complete = False
    suspended = False
    fail_message = ""
    message = ""
    for condition in _objects(status, "conditions"):
        cond_type = _str(condition, "type")
        cond_message = _str(condition, "message")
        cond_status = _str(condition, "status")
        if cond_type == "Failed":
            failed = True
            complete = True
            fail_message = cond_message
        elif cond_type == "Complete":
            complete = True
            message = cond_message
        elif cond_type == "Suspended":
            complete = True
            message = cond_message
            if cond_status == "True":
                suspended = True
    if not complete:
        return HealthStatus(HealthStatusCode.PROGRESSING, message)
    if failed:
        return HealthStatus(HealthStatusCode.DEGRADED, fail_message)
    if suspended:
        return HealthStatus(HealthStatusCode.SUSPENDED, fail_message)
    return HealthStatus(HealthStatusCode.HEALTHY, message)