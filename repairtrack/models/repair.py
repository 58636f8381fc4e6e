from typing import Optional
from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from .base import Timestamped, utcnow
from .enums import OutstandingRepairStatus, RepairSessionStatus, RepairType


class OutstandingRepair(Timestamped, table=True):
    __tablename__ = "outstanding_repairs"

    id: str = Field(primary_key=True, index=True)
    item_id: str = Field(foreign_key="items.id", index=True)
    repair_type: RepairType = Field(index=True)
    status: OutstandingRepairStatus = Field(default=OutstandingRepairStatus.PENDING, index=True)
    description: Optional[str] = None
    priority: int = 1  # 1 = low, 2 = medium, 3 = high, 4 = urgent
    estimated_cost: Optional[int] = None  # cents
    actual_cost: Optional[int] = None  # cents
    assigned_technician_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    completed_at: Optional[datetime] = None

    # outcome of an unsuccessful repair
    failure_code: Optional[str] = None
    notes: Optional[str] = None


class RepairSession(Timestamped, table=True):
    __tablename__ = "repair_sessions"

    id: str = Field(primary_key=True, index=True)
    item_id: str = Field(foreign_key="items.id", index=True)
    workflow_version_id: str = Field(foreign_key="workflow_definitions.id", index=True)
    technician_id: str = Field(foreign_key="users.id", index=True)
    status: RepairSessionStatus = Field(default=RepairSessionStatus.IN_PROGRESS, index=True)
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None


class RepairSessionOutstandingRepair(SQLModel, table=True):
    __tablename__ = "repair_session_outstanding_repairs"
    __table_args__ = (
        UniqueConstraint("repair_session_id", "outstanding_repair_id", name="repair_session_outstanding_repairs_unique"),
    )

    id: str = Field(primary_key=True)
    repair_session_id: str = Field(foreign_key="repair_sessions.id", index=True)
    outstanding_repair_id: str = Field(foreign_key="outstanding_repairs.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
