from typing import Optional
from sqlmodel import Field
from .base import Timestamped
from .enums import ItemStatus


class Item(Timestamped, table=True):
    __tablename__ = "items"

    id: str = Field(primary_key=True, index=True)
    lp: str = Field(unique=True, index=True)  # licence plate, what gets scanned
    sku: Optional[str] = Field(default=None, index=True)
    model: Optional[str] = None
    status: ItemStatus = Field(default=ItemStatus.AWAITING_REPAIR, index=True)
    current_workflow_version_id: Optional[str] = Field(default=None, foreign_key="workflow_definitions.id")
    grade: Optional[str] = None
    new_barcode: Optional[str] = None
    location_id: Optional[str] = None
