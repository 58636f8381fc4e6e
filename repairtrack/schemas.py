"""
API DTOs
Request/response shapes for the HTTP layer. Table models live in ``repairtrack.models``.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from .models import (
    ItemStatus,
    OutstandingRepairStatus,
    RepairSessionStatus,
    RepairType,
)


# ============================================================================
# MATCHER
# ============================================================================

class AppliesTo(BaseModel):
    """
    Which repairs a workflow definition governs.
    Stored as JSON on the definition row: {"repairType": ..., "sku": ...}.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    repair_type: RepairType = Field(alias="repairType")
    sku: Optional[str] = None

    def to_json(self) -> dict:
        data = {"repairType": self.repair_type.value}
        if self.sku is not None:
            data["sku"] = self.sku
        return data


# ============================================================================
# WORKFLOWS
# ============================================================================

class FailureAnswerDTO(BaseModel):
    """Failure answer (without id for creation)"""
    code: str = Field(min_length=1, max_length=50)
    label: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    requires_notes: bool = False


class FailureAnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    code: str
    label: str
    description: Optional[str] = None
    requires_notes: bool


class QuestionDTO(BaseModel):
    """Checklist question (without id for creation)"""
    prompt: str = Field(min_length=1, max_length=500)
    key: str = Field(min_length=1, max_length=100)
    order: int = Field(ge=0)
    required: bool = True
    critical: bool = False
    fail_on_no: bool = False
    help_text: Optional[str] = Field(default=None, max_length=1000)


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    order: int
    prompt: str
    key: str
    required: bool
    critical: bool
    fail_on_no: bool
    help_text: Optional[str] = None


def _unique_codes(answers: Optional[List[FailureAnswerDTO]]) -> Optional[List[FailureAnswerDTO]]:
    if answers is None:
        return answers
    codes = [a.code for a in answers]
    if len(codes) != len(set(codes)):
        raise ValueError("failure answer codes must be unique within a workflow")
    return answers


class CreateWorkflowDTO(BaseModel):
    """Request to create a workflow definition"""
    name: str = Field(min_length=1, max_length=255)
    repair_type: RepairType
    sku: Optional[str] = None
    sop_url: HttpUrl
    png_file_path: Optional[str] = None
    video_url: Optional[str] = None
    version: int = Field(default=1, gt=0)
    is_active: bool = True
    failure_answers: List[FailureAnswerDTO] = []

    @field_validator("failure_answers")
    @classmethod
    def _check_codes(cls, v):
        return _unique_codes(v)


class UpdateWorkflowDTO(BaseModel):
    """Request to update a workflow definition; omitted fields are left alone"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    repair_type: Optional[RepairType] = None
    sku: Optional[str] = None
    sop_url: Optional[HttpUrl] = None
    png_file_path: Optional[str] = None
    video_url: Optional[str] = None
    version: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None
    failure_answers: Optional[List[FailureAnswerDTO]] = None

    @field_validator("failure_answers")
    @classmethod
    def _check_codes(cls, v):
        return _unique_codes(v)


class Workflow(BaseModel):
    """Workflow definition as returned by the API"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    applies_to: dict
    sop_url: str
    png_file_path: Optional[str] = None
    video_url: Optional[str] = None
    version: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class WorkflowDetailDTO(BaseModel):
    """Workflow with its failure answers and checklist questions"""
    workflow: Workflow
    failure_answers: List[FailureAnswerResponse]
    questions: List[QuestionResponse]


class WorkflowListDTO(BaseModel):
    items: List[Workflow]
    limit: int
    offset: int
    total: int


# ============================================================================
# ITEMS & OUTSTANDING REPAIRS
# ============================================================================

class CreateItemDTO(BaseModel):
    lp: str = Field(min_length=1)
    sku: Optional[str] = None
    model: Optional[str] = None
    location_id: Optional[str] = None

    @field_validator("lp")
    @classmethod
    def _strip_lp(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("License plate is required")
        return v


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    lp: str
    sku: Optional[str] = None
    model: Optional[str] = None
    status: ItemStatus
    current_workflow_version_id: Optional[str] = None
    grade: Optional[str] = None
    new_barcode: Optional[str] = None
    location_id: Optional[str] = None


class CreateOutstandingRepairDTO(BaseModel):
    item_id: str = Field(min_length=1)
    repair_type: RepairType
    description: Optional[str] = None
    priority: int = Field(default=1, ge=1, le=4)
    estimated_cost: Optional[int] = Field(default=None, gt=0)
    assigned_technician_id: Optional[str] = None


class OutstandingRepairResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_id: str
    repair_type: RepairType
    status: OutstandingRepairStatus
    description: Optional[str] = None
    priority: int
    estimated_cost: Optional[int] = None
    actual_cost: Optional[int] = None
    assigned_technician_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    failure_code: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class ScanItemResponse(BaseModel):
    item: ItemResponse
    workflow: Optional[Workflow] = None
    pending_repairs: List[OutstandingRepairResponse]
    completed_repairs: List[OutstandingRepairResponse]


# ============================================================================
# REPAIR FLOW
# ============================================================================

class UserInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    external_id: str
    email: str
    name: Optional[str] = None


class RepairSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_id: str
    workflow_version_id: str
    technician_id: str
    status: RepairSessionStatus
    started_at: datetime
    ended_at: Optional[datetime] = None


class StartRepairResponse(BaseModel):
    repair_session: RepairSessionResponse
    workflow: WorkflowDetailDTO
    item: ItemResponse


class RepairDetailDTO(BaseModel):
    """Repair plus the workflow that governs it, resolved for display only"""
    repair: OutstandingRepairResponse
    item: ItemResponse
    assigned_technician: Optional[UserInfo] = None
    workflow: Optional[WorkflowDetailDTO] = None
    workflow_message: Optional[str] = None


class CompleteRepairDTO(BaseModel):
    was_successful: bool
    failure_code: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class CompleteRepairResponse(BaseModel):
    repair: OutstandingRepairResponse
    item_completed: bool
