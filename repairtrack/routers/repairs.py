from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from repairtrack.deps import current_user, get_item_repo, get_repair_service
from repairtrack.models import OutstandingRepairStatus, RepairType, User
from repairtrack.schemas import (
    CompleteRepairDTO,
    CompleteRepairResponse,
    CreateOutstandingRepairDTO,
    OutstandingRepairResponse,
    RepairDetailDTO,
    StartRepairResponse,
)
from repairtrack.services.items import ItemRepository
from repairtrack.services.repairs import RepairService
from repairtrack.util.pagination import clamp_limit, clamp_offset

router = APIRouter()


@router.post("/outstanding-repairs", response_model=OutstandingRepairResponse, status_code=status.HTTP_201_CREATED)
def create_outstanding_repair(
    data: CreateOutstandingRepairDTO,
    user: User = Depends(current_user),
    repo: ItemRepository = Depends(get_item_repo),
):
    return repo.create_outstanding_repair(data)


@router.get("/outstanding-repairs", response_model=List[OutstandingRepairResponse])
def list_outstanding_repairs(
    item_id: Optional[str] = None,
    status: Optional[OutstandingRepairStatus] = None,
    repair_type: Optional[RepairType] = None,
    assigned_technician_id: Optional[str] = None,
    include_completed: bool = False,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    user: User = Depends(current_user),
    repo: ItemRepository = Depends(get_item_repo),
):
    return repo.list_outstanding_repairs(
        item_id=item_id,
        status=status,
        repair_type=repair_type,
        assigned_technician_id=assigned_technician_id,
        include_completed=include_completed,
        limit=clamp_limit(limit),
        offset=clamp_offset(offset),
    )


@router.get("/outstanding-repairs/{repair_id}", response_model=OutstandingRepairResponse)
def get_outstanding_repair(
    repair_id: str,
    user: User = Depends(current_user),
    repo: ItemRepository = Depends(get_item_repo),
):
    repair = repo.get_outstanding_repair(repair_id)
    if not repair:
        raise HTTPException(status_code=404, detail="Outstanding repair not found")
    return repair


@router.get("/outstanding-repairs/{repair_id}/workflow", response_model=RepairDetailDTO)
def get_repair_with_workflow(
    repair_id: str,
    user: User = Depends(current_user),
    service: RepairService = Depends(get_repair_service),
):
    return service.get_repair_with_workflow(repair_id)


@router.post("/outstanding-repairs/{repair_id}:start", response_model=StartRepairResponse, status_code=status.HTTP_201_CREATED)
def start_repair(
    repair_id: str,
    user: User = Depends(current_user),
    service: RepairService = Depends(get_repair_service),
):
    return service.start_repair(repair_id, technician=user)


@router.post("/outstanding-repairs/{repair_id}:complete", response_model=CompleteRepairResponse)
def complete_repair(
    repair_id: str,
    data: CompleteRepairDTO,
    user: User = Depends(current_user),
    service: RepairService = Depends(get_repair_service),
):
    return service.complete_repair(repair_id, data, technician=user)
