"""Settings that control how resources are compared."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

_LOGGER_NAME = "gitopskit.diff"


class Normalizer(ABC):
    """Updates a resource before it is compared."""

    @abstractmethod
    def normalize(self, obj: Dict[str, Any]) -> None:
        """Mutate ``obj`` in place; raise to report a failure."""


class NoopNormalizer(Normalizer):
    """Normalizer that leaves resources untouched."""

    def normalize(self, obj: Dict[str, Any]) -> None:
        """Accept any resource mapping without changing it."""
        if not isinstance(obj, dict):
            raise TypeError(f"expected a resource mapping, got {type(obj).__name__}")


def get_noop_normalizer() -> Normalizer:
    """Return a normalizer that does not modify resources."""
    return NoopNormalizer()


def _default_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


@dataclass
class DiffOptions:
    """Diffing settings.

    ``server_side_dry_runner`` is any object with a
    ``run(obj, manager) -> str`` method returning the predicted live state
    as a JSON string.
    """

    # Ignore differences caused by aggregated roles in RBAC resources.
    ignore_aggregated_roles: bool = False
    normalizer: Normalizer = field(default_factory=get_noop_normalizer)
    log: logging.Logger = field(default_factory=_default_logger)
    structured_merge_diff: bool = False
    gvk_parser: Optional[Any] = None
    manager: str = ""
    server_side_diff: bool = False
    server_side_dry_runner: Optional[Any] = None
    ignore_mutation_webhook: bool = True