from typing import Any, Dict, Optional
from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Field, Relationship
from .base import Timestamped


class WorkflowDefinition(Timestamped, table=True):
    __tablename__ = "workflow_definitions"

    id: str = Field(primary_key=True, index=True)
    name: str
    # {"repairType": <RepairType>, "sku": <str, optional>}; parsed by the resolver
    applies_to: Dict[str, Any] = Field(sa_type=JSON)
    sop_url: str
    png_file_path: Optional[str] = None
    video_url: Optional[str] = None
    version: int = Field(default=1, index=True)
    is_active: bool = Field(default=True, index=True)

    failure_answers: list["WorkflowFailureAnswer"] = Relationship(
        back_populates="workflow",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    questions: list["WorkflowQuestion"] = Relationship(
        back_populates="workflow",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class WorkflowFailureAnswer(Timestamped, table=True):
    __tablename__ = "workflow_failure_answers"
    __table_args__ = (UniqueConstraint("workflow_id", "code", name="workflow_failure_answers_workflow_code_key"),)

    id: str = Field(primary_key=True, index=True)
    workflow_id: str = Field(foreign_key="workflow_definitions.id", index=True)
    code: str
    label: str
    description: Optional[str] = None
    requires_notes: bool = False

    workflow: Optional[WorkflowDefinition] = Relationship(back_populates="failure_answers")


class WorkflowQuestion(Timestamped, table=True):
    __tablename__ = "workflow_questions"

    id: str = Field(primary_key=True, index=True)
    workflow_id: str = Field(foreign_key="workflow_definitions.id", index=True)
    order: int
    prompt: str
    key: str
    required: bool = True
    critical: bool = False
    fail_on_no: bool = False
    help_text: Optional[str] = None

    workflow: Optional[WorkflowDefinition] = Relationship(back_populates="questions")
