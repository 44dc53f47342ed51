import itertools

import pytest

from gitopskit.healthstatus import (
    HealthStatus,
    HealthStatusCode,
    group_version_kind,
    is_worse,
)


def test_status_codes_use_wire_strings():
    assert HealthStatusCode("Healthy") is HealthStatusCode.HEALTHY
    assert HealthStatusCode("Degraded") is HealthStatusCode.DEGRADED
    assert HealthStatusCode.MISSING.value == "Missing"


def test_is_worse_basic():
    assert is_worse(HealthStatusCode.HEALTHY, HealthStatusCode.DEGRADED) is True
    assert is_worse(HealthStatusCode.DEGRADED, HealthStatusCode.HEALTHY) is False
    assert is_worse(HealthStatusCode.PROGRESSING, HealthStatusCode.PROGRESSING) is False


def test_is_worse_accepts_plain_strings():
    assert is_worse("Suspended", "Unknown") == is_worse(
        HealthStatusCode.SUSPENDED, HealthStatusCode.UNKNOWN
    )


def test_unknown_code_ranks_as_healthy():
    assert is_worse("bogus", HealthStatusCode.HEALTHY) is False
    assert is_worse(HealthStatusCode.HEALTHY, "bogus") is False


def test_is_worse_is_a_strict_total_order():
    codes = list(HealthStatusCode)
    for a, b in itertools.permutations(codes, 2):
        assert is_worse(a, b) != is_worse(b, a)
    for a, b, c in itertools.permutations(codes, 3):
        if is_worse(a, b) and is_worse(b, c):
            assert is_worse(a, c)


def test_health_status_default_message():
    status = HealthStatus(HealthStatusCode.HEALTHY)
    assert status.message == ""
    assert status.status is HealthStatusCode.HEALTHY


@pytest.mark.parametrize(
    "api_version, kind, expected",
    [
        ("apps/v1", "Deployment", ("apps", "v1", "Deployment")),
        ("v1", "Pod", ("", "v1", "Pod")),
        ("argoproj.io/v1alpha1", "Workflow", ("argoproj.io", "v1alpha1", "Workflow")),
    ],
)
def test_group_version_kind(api_version, kind, expected):
    assert group_version_kind({"apiVersion": api_version, "kind": kind}) == expected


def test_group_version_kind_missing_api_version():
    assert group_version_kind({"kind": "Pod"}) == ("", "", "Pod")


def test_group_version_kind_invalid_api_version():
    assert group_version_kind({"apiVersion": "a/b/c", "kind": "Pod"}) == ("", "", "")


def test_group_version_kind_non_string_fields():
    assert group_version_kind({"apiVersion": 1, "kind": 2}) == ("", "", "")