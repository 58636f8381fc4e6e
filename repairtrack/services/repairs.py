"""
Repair flows that depend on workflow resolution: starting a repair, showing a
repair with its workflow, and recording the outcome.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import Engine, update
from sqlmodel import Session, select

from repairtrack.errors import (
    ConflictError,
    NotFoundError,
    StoreUnavailable,
    ValidationFailed,
    WorkflowNotConfigured,
)
from repairtrack.models import (
    CLOSED_REPAIR_STATUSES,
    OPEN_REPAIR_STATUSES,
    Item,
    ItemStatus,
    OutstandingRepair,
    OutstandingRepairStatus,
    RepairSession,
    RepairSessionOutstandingRepair,
    RepairSessionStatus,
    User,
    WorkflowDefinition,
)
from repairtrack.models.base import utcnow
from repairtrack.schemas import (
    CompleteRepairDTO,
    CompleteRepairResponse,
    ItemResponse,
    OutstandingRepairResponse,
    RepairDetailDTO,
    RepairSessionResponse,
    StartRepairResponse,
    UserInfo,
)
from repairtrack.services.resolver import Resolution, WorkflowResolver
from repairtrack.services.workflows import WorkflowRepository
from repairtrack.util.ids import new_id

NO_WORKFLOW_MESSAGE = "No workflow configured for this repair"


def _status_label(status: OutstandingRepairStatus) -> str:
    return status.value.lower().replace("_", " ")


class RepairService:
    """
    Glue between outstanding repairs and the workflow resolver.

    "Nothing resolved" and "resolution failed" are kept apart all the way to
    the caller: the first is a configuration gap the user can act on, the
    second an infrastructure fault to retry.
    """

    def __init__(self, engine: Engine, resolver: WorkflowResolver, workflows: WorkflowRepository):
        self.engine = engine
        self.resolver = resolver
        self.workflows = workflows

    def _resolve_for(self, repair: OutstandingRepair, item: Item) -> Resolution:
        resolution = self.resolver.find_applicable_workflow(repair.repair_type, item.sku)
        if resolution.failed:
            raise StoreUnavailable() from resolution.error
        return resolution

    def _load(self, session: Session, repair_id: str) -> tuple[OutstandingRepair, Item]:
        repair = session.get(OutstandingRepair, repair_id)
        if repair is None:
            raise NotFoundError("Outstanding repair not found")
        item = session.get(Item, repair.item_id)
        if item is None:
            raise NotFoundError(f"Item {repair.item_id} of repair {repair_id} not found")
        return repair, item

    def start_repair(self, repair_id: str, technician: User) -> StartRepairResponse:
        """Open a repair session for a PENDING repair under its applicable workflow."""
        with Session(self.engine) as session:
            repair, item = self._load(session, repair_id)
            if repair.status != OutstandingRepairStatus.PENDING:
                raise ConflictError("Repair is not in pending status")

            resolution = self._resolve_for(repair, item)
            if not resolution.found:
                logger.warning(
                    "Cannot start repair {}: no workflow for {} / sku={}",
                    repair_id, repair.repair_type.value, item.sku,
                )
                raise WorkflowNotConfigured()
            workflow = session.get(WorkflowDefinition, resolution.workflow.id)
            if workflow is None:
                # deleted between resolution and now
                raise WorkflowNotConfigured()
            detail = self.workflows.workflow_detail(session, workflow)

            now = utcnow()
            claimed = session.exec(
                update(OutstandingRepair)
                .where(OutstandingRepair.id == repair.id)
                .where(OutstandingRepair.status == OutstandingRepairStatus.PENDING)
                .values(
                    status=OutstandingRepairStatus.IN_PROGRESS,
                    assigned_technician_id=technician.id,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                session.rollback()
                raise ConflictError("Repair is not in pending status")

            repair_session = RepairSession(
                id=new_id("rs_"),
                item_id=item.id,
                workflow_version_id=workflow.id,
                technician_id=technician.id,
                status=RepairSessionStatus.IN_PROGRESS,
                started_at=now,
            )
            session.add(repair_session)
            session.add(RepairSessionOutstandingRepair(
                id=new_id("rsl_"),
                repair_session_id=repair_session.id,
                outstanding_repair_id=repair.id,
            ))

            item.status = ItemStatus.IN_REPAIR
            item.current_workflow_version_id = workflow.id
            item.updated_at = now
            session.add(item)
            session.commit()
            session.refresh(repair_session)
            session.refresh(item)

            logger.info(
                "Technician {} started repair {} (session {}) with workflow {} v{}",
                technician.id, repair_id, repair_session.id, workflow.id, workflow.version,
            )
            return StartRepairResponse(
                repair_session=RepairSessionResponse.model_validate(repair_session),
                workflow=detail,
                item=ItemResponse.model_validate(item),
            )

    def get_repair_with_workflow(self, repair_id: str) -> RepairDetailDTO:
        """Read-only view of a repair and the workflow that currently governs it."""
        with Session(self.engine) as session:
            repair, item = self._load(session, repair_id)
            technician = None
            if repair.assigned_technician_id:
                technician = session.get(User, repair.assigned_technician_id)

            resolution = self._resolve_for(repair, item)
            detail = self.workflows.get_workflow(resolution.workflow.id) if resolution.found else None

            return RepairDetailDTO(
                repair=OutstandingRepairResponse.model_validate(repair),
                item=ItemResponse.model_validate(item),
                assigned_technician=UserInfo.model_validate(technician) if technician else None,
                workflow=detail,
                workflow_message=None if detail else NO_WORKFLOW_MESSAGE,
            )

    def _check_failure(self, repair: OutstandingRepair, item: Item, data: CompleteRepairDTO) -> None:
        if not data.failure_code:
            raise ValidationFailed(
                "Failure reason is required when repair could not be completed",
                details=[{"path": "failure_code", "msg": "required"}],
            )
        resolution = self._resolve_for(repair, item)
        if not resolution.found:
            raise WorkflowNotConfigured(
                "There is no Repair Workflow configured for this item, so no failure reason can be recorded."
            )
        answers = self.resolver.failure_answers(resolution.workflow.id)
        answer = next((a for a in answers if a.code == data.failure_code), None)
        if answer is None:
            raise ValidationFailed(
                f"Unknown failure reason '{data.failure_code}' for this repair's workflow",
                details=[{"path": "failure_code", "msg": "must be one of " + ", ".join(a.code for a in answers)}],
            )
        if answer.requires_notes and not (data.notes or "").strip():
            raise ValidationFailed(
                f"Notes are required for failure reason '{answer.code}'",
                details=[{"path": "notes", "msg": "required"}],
            )

    def complete_repair(self, repair_id: str, data: CompleteRepairDTO, technician: Optional[User] = None) -> CompleteRepairResponse:
        """
        Record the outcome of a repair. A failed repair must carry a failure
        code from the governing workflow (and notes when that code asks for them).
        Closing the last open repair of an item completes the item.
        """
        with Session(self.engine) as session:
            repair, item = self._load(session, repair_id)
            if repair.status not in OPEN_REPAIR_STATUSES:
                raise ConflictError(f"Repair is already {_status_label(repair.status)}")

            if not data.was_successful:
                self._check_failure(repair, item, data)

            now = utcnow()
            repair.status = OutstandingRepairStatus.COMPLETED if data.was_successful else OutstandingRepairStatus.CANCELLED
            repair.completed_at = now
            repair.updated_at = now
            repair.notes = data.notes
            if data.was_successful:
                repair.actual_cost = 0
                repair.failure_code = None
            else:
                repair.failure_code = data.failure_code
            if technician is not None and repair.assigned_technician_id is None:
                repair.assigned_technician_id = technician.id
            session.add(repair)

            linked = session.exec(
                select(RepairSession)
                .join(
                    RepairSessionOutstandingRepair,
                    RepairSessionOutstandingRepair.repair_session_id == RepairSession.id,
                )
                .where(RepairSessionOutstandingRepair.outstanding_repair_id == repair.id)
                .where(RepairSession.status == RepairSessionStatus.IN_PROGRESS)
            ).all()
            for repair_session in linked:
                repair_session.status = RepairSessionStatus.SUBMITTED
                repair_session.ended_at = now
                session.add(repair_session)

            session.flush()
            siblings = session.exec(select(OutstandingRepair).where(OutstandingRepair.item_id == item.id)).all()
            item_completed = all(r.status in CLOSED_REPAIR_STATUSES for r in siblings)
            if item_completed:
                item.status = ItemStatus.COMPLETED
                item.updated_at = now
                session.add(item)

            session.commit()
            session.refresh(repair)

            logger.info(
                "Repair {} {} (failure_code={}, item {} completed={})",
                repair_id, repair.status.value, repair.failure_code, item.id, item_completed,
            )
            return CompleteRepairResponse(
                repair=OutstandingRepairResponse.model_validate(repair),
                item_completed=item_completed,
            )
