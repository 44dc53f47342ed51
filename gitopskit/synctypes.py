"""Sync phases, hook types and per-resource sync results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

# Comma-separated list of options for syncing.
ANNOTATION_SYNC_OPTIONS = "argocd.argoproj.io/sync-options"
# Which wave of the sync the resource or hook should be in.
ANNOTATION_SYNC_WAVE = "argocd.argoproj.io/sync-wave"
# Hook type of a resource.
ANNOTATION_KEY_HOOK = "argocd.argoproj.io/hook"
# Policy of deleting a hook.
ANNOTATION_KEY_HOOK_DELETE_POLICY = "argocd.argoproj.io/hook-delete-policy"
ANNOTATION_DELETION_APPROVED = "argocd.argoproj.io/deletion-approved"

SYNC_OPTION_SKIP_DRY_RUN_ON_MISSING_RESOURCE = "SkipDryRunOnMissingResource=true"
SYNC_OPTION_DISABLE_PRUNE = "Prune=false"
SYNC_OPTIONS_DISABLE_VALIDATION = "Validate=false"
SYNC_OPTION_PRUNE_LAST = "PruneLast=true"
SYNC_OPTION_REPLACE = "Replace=true"
SYNC_OPTION_FORCE = "Force=true"
SYNC_OPTION_SERVER_SIDE_APPLY = "ServerSideApply=true"
SYNC_OPTION_DISABLE_SERVER_SIDE_APPLY = "ServerSideApply=false"
SYNC_OPTION_DISABLE_DELETION = "Delete=false"
SYNC_OPTION_APPLY_OUT_OF_SYNC_ONLY = "ApplyOutOfSyncOnly=true"
SYNC_OPTION_DELETE_REQUIRE_CONFIRM = "Delete=confirm"
SYNC_OPTION_PRUNE_REQUIRE_CONFIRM = "Prune=confirm"


class SyncPhase(str, Enum):
    """Phase of a sync operation."""

    PRE_SYNC = "PreSync"
    SYNC = "Sync"
    POST_SYNC = "PostSync"
    SYNC_FAIL = "SyncFail"


class OperationPhase(str, Enum):
    """State of an operation."""

    RUNNING = "Running"
    TERMINATING = "Terminating"
    FAILED = "Failed"
    ERROR = "Error"
    SUCCEEDED = "Succeeded"

    def completed(self) -> bool:
        """True once the operation has finished, whatever the outcome."""
        return self in (OperationPhase.FAILED, OperationPhase.ERROR, OperationPhase.SUCCEEDED)

    def running(self) -> bool:
        return self is OperationPhase.RUNNING

    def successful(self) -> bool:
        return self is OperationPhase.SUCCEEDED

    def failed(self) -> bool:
        return self is OperationPhase.FAILED


class ResultCode(str, Enum):
    """Outcome of syncing one resource."""

    SYNCED = "Synced"
    SYNC_FAILED = "SyncFailed"
    PRUNED = "Pruned"
    PRUNE_SKIPPED = "PruneSkipped"


class HookType(str, Enum):
    """Kind of sync hook."""

    PRE_SYNC = "PreSync"
    SYNC = "Sync"
    POST_SYNC = "PostSync"
    SKIP = "Skip"
    SYNC_FAIL = "SyncFail"


class HookDeletePolicy(str, Enum):
    """When a hook resource gets deleted."""

    HOOK_SUCCEEDED = "HookSucceeded"
    HOOK_FAILED = "HookFailed"
    BEFORE_HOOK_CREATION = "BeforeHookCreation"


def new_hook_type(value: str) -> Optional[HookType]:
    """Return the hook type named by ``value``, or None if it names none."""
    try:
        return HookType(value)
    except ValueError:
        return None


def new_hook_delete_policy(value: str) -> Optional[HookDeletePolicy]:
    """Return the delete policy named by ``value``, or None if it names none."""
    try:
        return HookDeletePolicy(value)
    except ValueError:
        return None


@dataclass
class ResourceSyncResult:
    """Result of syncing a single resource or hook."""

    resource_key: Any
    version: str = ""
    order: int = 0
    status: Optional[ResultCode] = None
    message: str = ""
    hook_type: Optional[HookType] = None
    hook_phase: Optional[OperationPhase] = None
    sync_phase: Optional[SyncPhase] = None