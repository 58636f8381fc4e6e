from enum import Enum


class RepairType(str, Enum):
    TROLLEY_REPLACEMENT = "TROLLEY_REPLACEMENT"
    HANDLE_REPLACEMENT = "HANDLE_REPLACEMENT"
    LINER_REPLACEMENT = "LINER_REPLACEMENT"
    ZIPPER_SLIDER = "ZIPPER_SLIDER"
    ZIPPER_TAPE = "ZIPPER_TAPE"
    ZIPPER_FULL_REPLACEMENT = "ZIPPER_FULL_REPLACEMENT"
    WHEEL_REPLACEMENT = "WHEEL_REPLACEMENT"
    LOCK_REPLACEMENT = "LOCK_REPLACEMENT"
    LOGO_REPLACEMENT = "LOGO_REPLACEMENT"


class ItemStatus(str, Enum):
    AWAITING_REPAIR = "AWAITING_REPAIR"
    IN_REPAIR = "IN_REPAIR"
    COMPLETED = "COMPLETED"
    REQUIRES_REVIEW = "REQUIRES_REVIEW"
    SCRAP = "SCRAP"


class OutstandingRepairStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# statuses a repair can still be worked on from
OPEN_REPAIR_STATUSES = (OutstandingRepairStatus.PENDING, OutstandingRepairStatus.IN_PROGRESS)
CLOSED_REPAIR_STATUSES = (OutstandingRepairStatus.COMPLETED, OutstandingRepairStatus.CANCELLED)


class RepairSessionStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    ABANDONED = "ABANDONED"
