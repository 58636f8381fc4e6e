from .base import Timestamped
from .enums import (
    RepairType, ItemStatus, OutstandingRepairStatus, RepairSessionStatus,
    OPEN_REPAIR_STATUSES, CLOSED_REPAIR_STATUSES,
)
from .workflow import WorkflowDefinition, WorkflowFailureAnswer, WorkflowQuestion
from .item import Item
from .repair import OutstandingRepair, RepairSession, RepairSessionOutstandingRepair
from .user import User

__all__ = [
    "Timestamped",
    "RepairType", "ItemStatus", "OutstandingRepairStatus", "RepairSessionStatus",
    "OPEN_REPAIR_STATUSES", "CLOSED_REPAIR_STATUSES",
    "WorkflowDefinition", "WorkflowFailureAnswer", "WorkflowQuestion",
    "Item",
    "OutstandingRepair", "RepairSession", "RepairSessionOutstandingRepair",
    "User",
]
