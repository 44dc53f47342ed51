import pytest

from gitopskit.health_pod import get_job_health, get_pod_health
from gitopskit.healthstatus import HealthCheckError, HealthStatusCode


def pod(restart_policy="Always", **status):
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": "my-pod"},
        "spec": {"restartPolicy": restart_policy, "containers": [{"name": "main"}]},
        "status": status,
    }


def job(*conditions):
    return {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": {"name": "my-job"},
        "status": {"conditions": list(conditions)},
    }


def test_pod_pending():
    result = get_pod_health(pod(phase="Pending", message="waiting"))
    assert result.status is HealthStatusCode.PROGRESSING
    assert result.message == "waiting"


def test_pod_running_not_ready():
    result = get_pod_health(
        pod(phase="Running", conditions=[{"type": "Ready", "status": "False"}])
    )
    assert result.status is HealthStatusCode.PROGRESSING


def test_pod_running_ready_restart_always():
    result = get_pod_health(
        pod(phase="Running", conditions=[{"type": "Ready", "status": "True"}])
    )
    assert result.status is HealthStatusCode.HEALTHY


def test_pod_running_not_ready_with_previous_termination_is_degraded():
    result = get_pod_health(
        pod(
            phase="Running",
            containerStatuses=[
                {"name": "main", "state": {"running": {}}, "lastState": {"terminated": {"exitCode": 1}}}
            ],
        )
    )
    assert result.status is HealthStatusCode.DEGRADED


def test_pod_crashloop():
    result = get_pod_health(
        pod(
            phase="Running",
            containerStatuses=[
                {
                    "name": "main",
                    "state": {"waiting": {"reason": "CrashLoopBackOff", "message": "back-off restarting"}},
                }
            ],
        )
    )
    assert result.status is HealthStatusCode.DEGRADED
    assert result.message == "back-off restarting"


def test_pod_imagepullbackoff_joins_messages():
    result = get_pod_health(
        pod(
            phase="Pending",
            containerStatuses=[
                {"name": "a", "state": {"waiting": {"reason": "ImagePullBackOff", "message": "one"}}},
                {"name": "b", "state": {"waiting": {"reason": "ErrImagePull", "message": "two"}}},
                {"name": "c", "state": {"waiting": {"reason": "ContainerCreating", "message": "three"}}},
            ],
        )
    )
    assert result.status is HealthStatusCode.DEGRADED
    assert result.message == "one, two"


def test_pod_error_reason_suffix():
    result = get_pod_health(
        pod(
            phase="Pending",
            containerStatuses=[
                {"name": "a", "state": {"waiting": {"reason": "CreateContainerConfigError", "message": "bad"}}}
            ],
        )
    )
    assert result.status is HealthStatusCode.DEGRADED
    assert result.message == "bad"


def test_waiting_errors_ignored_for_restart_never():
    result = get_pod_health(
        pod(
            "Never",
            phase="Pending",
            containerStatuses=[
                {"name": "a", "state": {"waiting": {"reason": "ImagePullBackOff", "message": "one"}}}
            ],
        )
    )
    assert result.status is HealthStatusCode.PROGRESSING


@pytest.mark.parametrize("policy", ["Never", "OnFailure"])
def test_pod_running_finite_restart_policy(policy):
    assert get_pod_health(pod(policy, phase="Running")).status is HealthStatusCode.PROGRESSING


def test_pod_running_without_restart_policy_is_unknown():
    assert get_pod_health(pod("", phase="Running")).status is HealthStatusCode.UNKNOWN


def test_pod_succeeded():
    assert get_pod_health(pod("Never", phase="Succeeded")).status is HealthStatusCode.HEALTHY


def test_pod_failed_uses_status_message():
    result = get_pod_health(pod("Never", phase="Failed", message="evicted"))
    assert result.status is HealthStatusCode.DEGRADED
    assert result.message == "evicted"


def test_pod_failed_uses_exit_code():
    result = get_pod_health(
        pod(
            "Never",
            phase="Failed",
            containerStatuses=[{"name": "main", "state": {"terminated": {"exitCode": 2}}}],
        )
    )
    assert result.status is HealthStatusCode.DEGRADED
    assert result.message == 'container "main" failed with exit code 2'


def test_pod_failed_prefers_init_containers_and_oom():
    result = get_pod_health(
        pod(
            "Never",
            phase="Failed",
            initContainerStatuses=[
                {"name": "init", "state": {"terminated": {"reason": "OOMKilled", "exitCode": 137}}}
            ],
            containerStatuses=[{"name": "main", "state": {"terminated": {"message": "late"}}}],
        )
    )
    assert result.message == "OOMKilled"


def test_pod_failed_without_details():
    result = get_pod_health(pod("Never", phase="Failed"))
    assert result.status is HealthStatusCode.DEGRADED
    assert result.message == ""


def test_pod_wrong_gvk():
    obj = pod(phase="Pending")
    obj["apiVersion"] = "v2"
    with pytest.raises(HealthCheckError, match="unsupported Pod GVK: /v2, Kind=Pod"):
        get_pod_health(obj)


def test_pod_bad_field_type():
    obj = pod(phase=3)
    with pytest.raises(HealthCheckError, match="failed to convert unstructured Pod to typed"):
        get_pod_health(obj)


def test_job_running():
    assert get_job_health(job()).status is HealthStatusCode.PROGRESSING


def test_job_failed():
    result = get_job_health(
        job({"type": "Failed", "status": "True", "message": "backoff limit exceeded"})
    )
    assert result.status is HealthStatusCode.DEGRADED
    assert result.message == "backoff limit exceeded"


def test_job_succeeded():
    result = get_job_health(job({"type": "Complete", "status": "True", "message": "done"}))
    assert result.status is HealthStatusCode.HEALTHY
    assert result.message == "done"


def test_job_suspended():
    result = get_job_health(
        job({"type": "Suspended", "status": "True", "message": "Job suspended"})
    )
    assert result.status is HealthStatusCode.SUSPENDED
    assert result.message == ""


def test_job_resumed_suspension_is_healthy():
    result = get_job_health(job({"type": "Suspended", "status": "False", "message": "resumed"}))
    assert result.status is HealthStatusCode.HEALTHY
    assert result.message == "resumed"


def test_job_wrong_gvk():
    obj = job()
    obj["apiVersion"] = "batch/v1beta1"
    with pytest.raises(HealthCheckError, match="unsupported Job GVK"):
        get_job_health(obj)