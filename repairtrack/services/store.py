"""
Read side of the workflow-definition store, as seen by the resolver.
"""

from abc import ABC, abstractmethod
from typing import List

from loguru import logger
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from repairtrack.errors import StoreUnavailable
from repairtrack.models import WorkflowDefinition, WorkflowFailureAnswer


class WorkflowDefinitionStore(ABC):

    @abstractmethod
    def list_active_workflow_definitions(self) -> List[WorkflowDefinition]:
        """Every definition with ``is_active`` set, matcher and version included."""

    @abstractmethod
    def list_failure_answers(self, workflow_id: str) -> List[WorkflowFailureAnswer]:
        """Every failure answer attached to ``workflow_id``."""


class SqlWorkflowStore(WorkflowDefinitionStore):
    """Store backed by the application database. Read failures surface as StoreUnavailable."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def list_active_workflow_definitions(self) -> List[WorkflowDefinition]:
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(WorkflowDefinition).where(WorkflowDefinition.is_active == True)  # noqa: E712
                ).all()
                return list(rows)
        except SQLAlchemyError as exc:
            logger.error("Could not list active workflow definitions: {}", exc)
            raise StoreUnavailable() from exc

    def list_failure_answers(self, workflow_id: str) -> List[WorkflowFailureAnswer]:
        try:
            with Session(self.engine) as session:
                rows = session.exec(
                    select(WorkflowFailureAnswer)
                    .where(WorkflowFailureAnswer.workflow_id == workflow_id)
                    .order_by(WorkflowFailureAnswer.code)
                ).all()
                return list(rows)
        except SQLAlchemyError as exc:
            logger.error("Could not list failure answers for workflow {}: {}", workflow_id, exc)
            raise StoreUnavailable() from exc
