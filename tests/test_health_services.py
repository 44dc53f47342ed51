import pytest

from gitopskit.health_services import (
    get_argo_workflow_health,
    get_ingress_health,
    get_pvc_health,
    get_service_health,
)
from gitopskit.healthstatus import HealthCheckError, HealthStatusCode


def _ingress(status):
    obj = {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {"name": "argocd-server-ingress"},
    }
    if status is not None:
        obj["status"] = status
    return obj


@pytest.mark.parametrize(
    "status, expected",
    [
        ({"loadBalancer": {"ingress": [{"ip": "10.0.0.1"}]}}, HealthStatusCode.HEALTHY),
        ({"loadBalancer": {}}, HealthStatusCode.PROGRESSING),
        ({"loadBalancer": {"ingress": [{"ip": "10.0.0.1"}, {"hostname": "lb.example.com"}]}},
         HealthStatusCode.HEALTHY),
        (None, HealthStatusCode.PROGRESSING),
        ({"loadBalancer": {"ingress": "bogus"}}, HealthStatusCode.PROGRESSING),
    ],
)
def test_ingress_health(status, expected):
    assert get_ingress_health(_ingress(status)).status == expected


def _pvc(phase):
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": "data"},
        "status": {"phase": phase} if phase is not None else {},
    }


@pytest.mark.parametrize(
    "phase, expected",
    [
        ("Bound", HealthStatusCode.HEALTHY),
        ("Pending", HealthStatusCode.PROGRESSING),
        ("Lost", HealthStatusCode.DEGRADED),
        (None, HealthStatusCode.UNKNOWN),
    ],
)
def test_pvc_health(phase, expected):
    assert get_pvc_health(_pvc(phase)).status == expected


def test_pvc_wrong_version_is_unsupported():
    obj = _pvc("Bound")
    obj["apiVersion"] = "v2"
    with pytest.raises(HealthCheckError, match="unsupported PersistentVolumeClaim GVK"):
        get_pvc_health(obj)


def test_pvc_bad_phase_type():
    with pytest.raises(HealthCheckError, match="failed to convert"):
        get_pvc_health(_pvc(5))


def _service(service_type, ingress=None):
    obj = {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "argocd-server"},
        "spec": {"type": service_type, "ports": [{"port": 80}]},
        "status": {"loadBalancer": {}},
    }
    if ingress is not None:
        obj["status"]["loadBalancer"]["ingress"] = ingress
    return obj


@pytest.mark.parametrize(
    "obj, expected",
    [
        (_service("ClusterIP"), HealthStatusCode.HEALTHY),
        (_service("LoadBalancer", [{"hostname": "lb.example.com"}]), HealthStatusCode.HEALTHY),
        (_service("LoadBalancer"), HealthStatusCode.PROGRESSING),
        (_service("LoadBalancer", [{"ip": "10.0.0.1"}, {"ip": "10.0.0.2"}]),
         HealthStatusCode.HEALTHY),
    ],
)
def test_service_health(obj, expected):
    assert get_service_health(obj).status == expected


def test_service_wrong_kind_is_unsupported():
    obj = _service("ClusterIP")
    obj["apiVersion"] = "apps/v1"
    with pytest.raises(HealthCheckError, match="unsupported Service GVK"):
        get_service_health(obj)


def _workflow(status):
    obj = {
        "spec": {
            "entrypoint": "sampleEntryPoint",
            "extraneousKey": "we are agnostic to extraneous keys",
        }
    }
    if status is not None:
        obj["status"] = status
    return obj


def test_argo_workflow_running():
    health = get_argo_workflow_health(
        _workflow({"phase": "Running", "message": "This node is running"})
    )
    assert health.status == HealthStatusCode.PROGRESSING
    assert health.message == "This node is running"


def test_argo_workflow_succeeded():
    health = get_argo_workflow_health(
        _workflow({"phase": "Succeeded", "message": "This node is has succeeded"})
    )
    assert health.status == HealthStatusCode.HEALTHY
    assert health.message == "This node is has succeeded"


def test_argo_workflow_without_status():
    health = get_argo_workflow_health(_workflow(None))
    assert health.status == HealthStatusCode.PROGRESSING
    assert health.message == ""


@pytest.mark.parametrize(
    "phase, expected",
    [
        ("Pending", HealthStatusCode.PROGRESSING),
        ("Failed", HealthStatusCode.DEGRADED),
        ("Error", HealthStatusCode.DEGRADED),
        ("Skipped", HealthStatusCode.UNKNOWN),
    ],
)
def test_argo_workflow_phases(phase, expected):
    assert get_argo_workflow_health(_workflow({"phase": phase})).status == expected


def test_argo_workflow_malformed_status():
    with pytest.raises(HealthCheckError):
        get_argo_workflow_health(_workflow("broken"))