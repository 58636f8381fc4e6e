"""
Items and the outstanding repairs recorded against them.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy import Engine, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from repairtrack.errors import ConflictError, NotFoundError
from repairtrack.models import (
    CLOSED_REPAIR_STATUSES,
    OPEN_REPAIR_STATUSES,
    Item,
    OutstandingRepair,
    OutstandingRepairStatus,
    RepairType,
    User,
    WorkflowDefinition,
)
from repairtrack.schemas import (
    CreateItemDTO,
    CreateOutstandingRepairDTO,
    ItemResponse,
    OutstandingRepairResponse,
    ScanItemResponse,
    Workflow,
)
from repairtrack.util.ids import new_id


class ItemRepository:

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_item(self, data: CreateItemDTO) -> ItemResponse:
        with Session(self.engine) as session:
            item = Item(
                id=new_id("itm_"),
                lp=data.lp,
                sku=data.sku,
                model=data.model,
                location_id=data.location_id,
            )
            session.add(item)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError(f"An item with license plate {data.lp} already exists") from exc
            session.refresh(item)
            logger.info("Created item {} (lp={}, sku={})", item.id, item.lp, item.sku)
            return ItemResponse.model_validate(item)

    def scan_item(self, lp: str) -> Optional[ScanItemResponse]:
        """
        Look an item up by the license plate a technician scanned.
        Exact match first, then a case-insensitive one.
        """
        lp = lp.strip()
        with Session(self.engine) as session:
            item = session.exec(select(Item).where(Item.lp == lp)).first()
            if item is None:
                item = session.exec(select(Item).where(func.lower(Item.lp) == lp.lower())).first()
            if item is None:
                logger.info("No item found with license plate {}", lp)
                return None

            workflow = None
            if item.current_workflow_version_id:
                row = session.get(WorkflowDefinition, item.current_workflow_version_id)
                workflow = Workflow.model_validate(row) if row else None

            repairs = session.exec(
                select(OutstandingRepair)
                .where(OutstandingRepair.item_id == item.id)
                .order_by(OutstandingRepair.priority.desc(), OutstandingRepair.created_at)
            ).all()

            return ScanItemResponse(
                item=ItemResponse.model_validate(item),
                workflow=workflow,
                pending_repairs=[
                    OutstandingRepairResponse.model_validate(r) for r in repairs if r.status in OPEN_REPAIR_STATUSES
                ],
                completed_repairs=[
                    OutstandingRepairResponse.model_validate(r)
                    for r in repairs if r.status == OutstandingRepairStatus.COMPLETED
                ],
            )

    # --- Outstanding repairs ---

    def create_outstanding_repair(self, data: CreateOutstandingRepairDTO) -> OutstandingRepairResponse:
        with Session(self.engine) as session:
            if not session.get(Item, data.item_id):
                raise NotFoundError(f"Item {data.item_id} not found")
            if data.assigned_technician_id and not session.get(User, data.assigned_technician_id):
                raise NotFoundError(f"Technician {data.assigned_technician_id} not found")

            repair = OutstandingRepair(id=new_id("rep_"), **data.model_dump())
            session.add(repair)
            session.commit()
            session.refresh(repair)
            logger.info("Recorded {} repair {} on item {}", repair.repair_type.value, repair.id, repair.item_id)
            return OutstandingRepairResponse.model_validate(repair)

    def get_outstanding_repair(self, repair_id: str) -> Optional[OutstandingRepairResponse]:
        with Session(self.engine) as session:
            repair = session.get(OutstandingRepair, repair_id)
            return OutstandingRepairResponse.model_validate(repair) if repair else None

    def list_outstanding_repairs(
        self,
        item_id: Optional[str] = None,
        status: Optional[OutstandingRepairStatus] = None,
        repair_type: Optional[RepairType] = None,
        assigned_technician_id: Optional[str] = None,
        include_completed: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[OutstandingRepairResponse]:
        with Session(self.engine) as session:
            query = select(OutstandingRepair)
            if item_id is not None:
                query = query.where(OutstandingRepair.item_id == item_id)
            if status is not None:
                query = query.where(OutstandingRepair.status == status)
            elif not include_completed:
                query = query.where(OutstandingRepair.status.not_in(CLOSED_REPAIR_STATUSES))
            if repair_type is not None:
                query = query.where(OutstandingRepair.repair_type == repair_type)
            if assigned_technician_id is not None:
                query = query.where(OutstandingRepair.assigned_technician_id == assigned_technician_id)

            rows = session.exec(
                query.order_by(OutstandingRepair.priority.desc(), OutstandingRepair.created_at)
                .offset(offset)
                .limit(limit)
            ).all()
            return [OutstandingRepairResponse.model_validate(r) for r in rows]
