"""
Workflow applicability resolution.

Given a repair type and an optional SKU, pick the single active workflow
definition that governs the repair:

1. If a SKU is given, definitions matching both the repair type and that exact
   SKU win. The highest version is returned and the search stops there.
2. Otherwise (no SKU, or no SKU-specific match), definitions for the repair
   type with no SKU restriction (a missing or empty stored SKU) are considered,
   highest version first.

Equal versions are broken by the lowest id. A definition restricted to another
SKU is never returned, and "nothing configured" is a normal outcome rather than
an error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from repairtrack.errors import StoreUnavailable
from repairtrack.models import RepairType, WorkflowDefinition, WorkflowFailureAnswer
from repairtrack.schemas import AppliesTo
from repairtrack.services.store import WorkflowDefinitionStore


class ResolutionStatus(str, Enum):
    found = "found"
    not_found = "not_found"
    failed = "failed"


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    workflow: Optional[WorkflowDefinition] = None
    error: Optional[StoreUnavailable] = None

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.found

    @property
    def failed(self) -> bool:
        return self.status is ResolutionStatus.failed


def parse_applies_to(workflow: WorkflowDefinition) -> Optional[AppliesTo]:
    """Matcher of ``workflow`` or None when the stored JSON has the wrong shape."""
    raw = workflow.applies_to
    if not isinstance(raw, dict):
        logger.warning("Skipping workflow {}: applies_to is not an object ({!r})", workflow.id, raw)
        return None
    try:
        return AppliesTo.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Skipping workflow {}: malformed applies_to {!r} ({} errors)", workflow.id, raw, exc.error_count())
        return None


def _repair_type_value(repair_type: Union[RepairType, str]) -> str:
    return repair_type.value if isinstance(repair_type, RepairType) else repair_type


def _unrestricted(stored_sku: Optional[str]) -> bool:
    return not stored_sku


def _latest(candidates: List[WorkflowDefinition]) -> Optional[WorkflowDefinition]:
    if not candidates:
        return None
    return min(candidates, key=lambda w: (-w.version, w.id))


class WorkflowResolver:
    """Stateless: safe to share and to call concurrently."""

    def __init__(self, store: WorkflowDefinitionStore):
        self.store = store

    def _matching(
        self,
        workflows: Iterable[WorkflowDefinition],
        repair_type: str,
        sku_matches: Callable[[Optional[str]], bool],
    ) -> List[WorkflowDefinition]:
        matches = []
        for workflow in workflows:
            if not workflow.is_active:
                continue
            applies_to = parse_applies_to(workflow)
            if applies_to is None:
                continue
            if applies_to.repair_type.value == repair_type and sku_matches(applies_to.sku):
                matches.append(workflow)
        return matches

    def find_applicable_workflow(
        self,
        repair_type: Union[RepairType, str],
        sku: Optional[str] = None,
    ) -> Resolution:
        wanted = _repair_type_value(repair_type)
        try:
            if sku is not None:
                specific = _latest(self._matching(
                    self.store.list_active_workflow_definitions(), wanted, lambda stored: stored == sku,
                ))
                if specific is not None:
                    logger.debug("Resolved {} / {} to workflow {} v{}", wanted, sku, specific.id, specific.version)
                    return Resolution(ResolutionStatus.found, workflow=specific)

            general = _latest(self._matching(
                self.store.list_active_workflow_definitions(), wanted, _unrestricted,
            ))
        except StoreUnavailable as exc:
            logger.error("Workflow resolution for {} / {} failed: {}", wanted, sku, exc.message)
            return Resolution(ResolutionStatus.failed, error=exc)

        if general is None:
            logger.info("No workflow configured for {} / {}", wanted, sku)
            return Resolution(ResolutionStatus.not_found)
        logger.debug("Resolved {} / {} to general workflow {} v{}", wanted, sku, general.id, general.version)
        return Resolution(ResolutionStatus.found, workflow=general)

    def failure_answers(self, workflow_id: str) -> List[WorkflowFailureAnswer]:
        """Failure answers of a resolved workflow. Raises StoreUnavailable on read failure."""
        return self.store.list_failure_answers(workflow_id)
