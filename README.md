# gitopskit

Building blocks for GitOps controllers. They work on Kubernetes resources held
as plain Python dictionaries, that is, the decoded JSON or YAML of a manifest.

- `gitopskit.health` assesses the health of built-in kinds: Deployments,
  ReplicaSets, DaemonSets, StatefulSets, Pods, Jobs, Services, Ingresses,
  PersistentVolumeClaims, HorizontalPodAutoscalers, APIServices and Argo
  Workflows.
- `gitopskit.mergepatch` creates and applies JSON merge patches, two-way and
  three-way. It can also prune live objects down to the fields a desired
  object has.
- `gitopskit.managedfields` decodes and encodes `metadata.managedFields`
  entries.
- `gitopskit.synctypes` defines the sync vocabulary: operation phases, hook
  types, hook delete policies and per-resource sync results.
- `gitopskit.diff_options` holds comparison settings and the `Normalizer`
  interface.

## Installation

```
pip install gitopskit
```

The package has no runtime dependencies.

## Health

```python
from gitopskit.health import get_resource_health
from gitopskit.healthstatus import HealthStatusCode

deployment = {
    "apiVersion": "apps/v1",
    "kind": "Deployment",
    "metadata": {"name": "web", "generation": 1},
    "spec": {"replicas": 2},
    "status": {"observedGeneration": 1, "replicas": 2,
               "updatedReplicas": 2, "availableReplicas": 2},
}
status = get_resource_health(deployment, None)
assert status.status is HealthStatusCode.HEALTHY
```

`get_resource_health` behaves as follows:

- An object with a `metadata.deletionTimestamp` is reported as Progressing,
  with the message "Pending deletion".
- If you pass a `HealthOverride` subclass, it is asked first. When it returns
  `None`, the built-in check for the kind is used instead.
- Kinds with no built-in check return `None`.
- When an assessment fails, `HealthCheckError` is raised. Its `health`
  attribute holds an Unknown status that carries the error message.

`get_health_check_func(group, kind)` returns the built-in check for a group
and kind, or `None` if there is none. You can also call the checks directly:

- `get_deployment_health`, `get_replicaset_health`, `get_daemonset_health`
  and `get_statefulset_health` in `gitopskit.health_workloads`
- `get_pod_health` and `get_job_health` in `gitopskit.health_pod`
- `get_hpa_health` and `get_apiservice_health` in `gitopskit.health_scaling`
- `get_ingress_health`, `get_pvc_health`, `get_service_health` and
  `get_argo_workflow_health` in `gitopskit.health_services`

`gitopskit.healthstatus.is_worse(current, new)` compares two status codes.
They are ranked from most healthy to least healthy as: Healthy, Suspended,
Progressing, Missing, Degraded, Unknown. `group_version_kind(obj)` splits an
object's `apiVersion` and `kind` into a `(group, version, kind)` tuple.

## Merge patches

```python
from gitopskit.mergepatch import (
    create_merge_patch,
    create_three_way_merge_patch,
    merge_patch,
)

merge_patch({"a": 1, "b": 2}, {"b": None, "c": 3})    # {"a": 1, "c": 3}
create_merge_patch({"a": 1, "b": 2}, {"a": 1, "c": 3}) # {"b": None, "c": 3}
```

`create_three_way_merge_patch(original, modified, current)` builds a patch
that brings `current` to `modified`. A field is deleted only if it was in
`original` and is no longer in `modified`. Fields that only `current` has are
left alone.

`remove_map_fields(config, live)` returns `live` restricted to the keys that
`config` also has, recursing into nested maps. `remove_list_fields(config, live)`
prunes each list item against the item at the same index in `config`, and
keeps any extra items as they are.

## Managed fields

```python
from gitopskit.managedfields import decode_managed_fields, encode_managed_fields

managed = decode_managed_fields(obj["metadata"]["managedFields"])
entries = encode_managed_fields(managed)
```

`decode_managed_fields` accepts `ManagedFieldsEntry` objects or their
dictionary form. Each entry is checked: the operation must be `Apply` or
`Update`, the API version must not be empty, and the fields type must be
`FieldsV1`. Problems raise `ManagedFieldsError`.

The result is a `Managed`, which holds a `VersionedSet` and a time for each
manager identifier. `build_manager_identifier` makes those identifiers. It
leaves out the fields type, the fields and the time, and for appliers it also
leaves out the API version.

`encode_managed_fields` turns a `Managed` back into entries and returns `None`
when there are none. The entries are sorted with `sort_managed_fields_entries`,
by operation, time, manager, API version and subresource.

## Sync types

`gitopskit.synctypes` provides these types:

- The enums `SyncPhase`, `OperationPhase`, `ResultCode`, `HookType` and
  `HookDeletePolicy`.
- `OperationPhase`, which has the methods `completed()`, `running()`,
  `successful()` and `failed()`.
- The dataclass `ResourceSyncResult`.
- `new_hook_type(value)` and `new_hook_delete_policy(value)`, which return the
  matching member, or `None` for an unknown name.
- Constants for the sync annotations and sync options.

## Diff settings

`gitopskit.diff_options.DiffOptions` is a dataclass of comparison settings:

- aggregated-role handling
- a `Normalizer`
- a logger
- the manager name
- server-side and structured merge flags
- a dry runner

`get_noop_normalizer()` returns a `NoopNormalizer`, which leaves resources
unchanged.

## What the package does not do

The package does not compute a diff between a desired and a live resource.
It does not normalize resources before comparison, and it does not mask
secret values. `DiffOptions` and `Normalizer` define the settings for such a
comparison, but nothing in the package uses them.

The package also does not talk to a cluster. It does not apply or sync
resources, run dry runs, or watch for changes. It works only on dictionaries
that you supply.