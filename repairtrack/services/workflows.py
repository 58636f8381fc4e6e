"""
Repository Layer
Administration of workflow definitions, their failure answers and checklist questions.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy import Engine, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from repairtrack.errors import ConflictError
from repairtrack.models import (
    Item,
    RepairSession,
    RepairType,
    WorkflowDefinition,
    WorkflowFailureAnswer,
    WorkflowQuestion,
)
from repairtrack.models.base import utcnow
from repairtrack.schemas import (
    AppliesTo,
    CreateWorkflowDTO,
    FailureAnswerDTO,
    FailureAnswerResponse,
    QuestionDTO,
    QuestionResponse,
    UpdateWorkflowDTO,
    Workflow,
    WorkflowDetailDTO,
    WorkflowListDTO,
)
from repairtrack.services.resolver import parse_applies_to
from repairtrack.util.ids import new_id


def _normalise_sku(sku: Optional[str]) -> Optional[str]:
    # a blank SKU on the admin form means "any SKU"
    if sku is None or not sku.strip():
        return None
    return sku.strip()


def _failure_answer_row(workflow_id: str, data: FailureAnswerDTO) -> WorkflowFailureAnswer:
    return WorkflowFailureAnswer(
        id=new_id("fa_"),
        workflow_id=workflow_id,
        code=data.code,
        label=data.label,
        description=data.description,
        requires_notes=data.requires_notes,
    )


class WorkflowRepository:
    """Repository for workflow definition CRUD operations"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def workflow_detail(self, session: Session, workflow: WorkflowDefinition) -> WorkflowDetailDTO:
        """Detail view built inside the caller's session and transaction"""
        answers = session.exec(
            select(WorkflowFailureAnswer)
            .where(WorkflowFailureAnswer.workflow_id == workflow.id)
            .order_by(WorkflowFailureAnswer.code)
        ).all()
        questions = session.exec(
            select(WorkflowQuestion)
            .where(WorkflowQuestion.workflow_id == workflow.id)
            .order_by(WorkflowQuestion.order)
        ).all()
        return WorkflowDetailDTO(
            workflow=Workflow.model_validate(workflow),
            failure_answers=[FailureAnswerResponse.model_validate(a) for a in answers],
            questions=[QuestionResponse.model_validate(q) for q in questions],
        )

    def create_workflow(self, data: CreateWorkflowDTO) -> WorkflowDetailDTO:
        """Create a workflow definition together with its failure answers."""
        workflow_id = new_id("wf_")
        applies_to = AppliesTo(repair_type=data.repair_type, sku=_normalise_sku(data.sku))

        with Session(self.engine) as session:
            workflow = WorkflowDefinition(
                id=workflow_id,
                name=data.name,
                applies_to=applies_to.to_json(),
                sop_url=str(data.sop_url),
                png_file_path=data.png_file_path,
                video_url=data.video_url,
                version=data.version,
                is_active=data.is_active,
            )
            session.add(workflow)
            for answer in data.failure_answers:
                session.add(_failure_answer_row(workflow_id, answer))
            session.commit()
            session.refresh(workflow)

            logger.info(
                "Created workflow {} '{}' v{} for {}",
                workflow_id, data.name, data.version, applies_to.to_json(),
            )
            return self.workflow_detail(session, workflow)

    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDetailDTO]:
        """Get workflow by ID with failure answers and questions"""
        with Session(self.engine) as session:
            workflow = session.get(WorkflowDefinition, workflow_id)
            if not workflow:
                return None
            return self.workflow_detail(session, workflow)

    def list_workflows(
        self,
        repair_type: Optional[RepairType] = None,
        sku: Optional[str] = None,
        is_active: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> WorkflowListDTO:
        """List workflow definitions, newest version first"""
        with Session(self.engine) as session:
            query = select(WorkflowDefinition)
            if is_active is not None:
                query = query.where(WorkflowDefinition.is_active == is_active)
            rows = session.exec(
                query.order_by(WorkflowDefinition.version.desc(), WorkflowDefinition.id)
            ).all()

            # applies_to is JSON, so the matcher filters run here
            if repair_type is not None or sku is not None:
                filtered = []
                for row in rows:
                    applies_to = parse_applies_to(row)
                    if applies_to is None:
                        continue
                    if repair_type is not None and applies_to.repair_type != repair_type:
                        continue
                    if sku is not None and applies_to.sku != sku:
                        continue
                    filtered.append(row)
                rows = filtered

            page = rows[offset:offset + limit]
            return WorkflowListDTO(
                items=[Workflow.model_validate(w) for w in page],
                limit=limit,
                offset=offset,
                total=len(rows),
            )

    def update_workflow(self, workflow_id: str, data: UpdateWorkflowDTO) -> Optional[WorkflowDetailDTO]:
        """Update a definition in place; failure answers, when given, replace the whole set"""
        fields = data.model_fields_set
        with Session(self.engine) as session:
            workflow = session.get(WorkflowDefinition, workflow_id)
            if not workflow:
                return None

            if data.name is not None:
                workflow.name = data.name
            if data.sop_url is not None:
                workflow.sop_url = str(data.sop_url)
            if "png_file_path" in fields:
                workflow.png_file_path = data.png_file_path
            if "video_url" in fields:
                workflow.video_url = data.video_url
            if data.version is not None:
                workflow.version = data.version
            if data.is_active is not None:
                workflow.is_active = data.is_active

            if data.repair_type is not None or "sku" in fields:
                current = parse_applies_to(workflow)
                repair_type = data.repair_type or (current.repair_type if current else None)
                if repair_type is None:
                    raise ConflictError(
                        f"Workflow {workflow_id} has a malformed matcher; repair_type must be given",
                    )
                sku = _normalise_sku(data.sku) if "sku" in fields else (current.sku if current else None)
                workflow.applies_to = AppliesTo(repair_type=repair_type, sku=sku).to_json()

            workflow.updated_at = utcnow()

            if data.failure_answers is not None:
                existing = session.exec(
                    select(WorkflowFailureAnswer).where(WorkflowFailureAnswer.workflow_id == workflow_id)
                ).all()
                for answer in existing:
                    session.delete(answer)
                # flush the deletes first so re-used codes do not trip the unique index
                session.flush()
                for answer in data.failure_answers:
                    session.add(_failure_answer_row(workflow_id, answer))

            session.add(workflow)
            session.commit()
            session.refresh(workflow)

            logger.info("Updated workflow {} ({})", workflow_id, ", ".join(sorted(fields)) or "no fields")
            return self.workflow_detail(session, workflow)

    def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a definition and its children; refused while repair sessions point at it"""
        with Session(self.engine) as session:
            workflow = session.get(WorkflowDefinition, workflow_id)
            if not workflow:
                return False

            sessions = session.exec(
                select(func.count()).select_from(RepairSession).where(RepairSession.workflow_version_id == workflow_id)
            ).one()
            if sessions:
                raise ConflictError(
                    f"Workflow {workflow_id} is used by {sessions} repair session(s); deactivate it instead",
                )

            for item in session.exec(select(Item).where(Item.current_workflow_version_id == workflow_id)):
                item.current_workflow_version_id = None
                session.add(item)

            session.delete(workflow)
            session.commit()

            logger.info("Deleted workflow {}", workflow_id)
            return True

    # --- Failure answers ---

    def add_failure_answer(self, workflow_id: str, data: FailureAnswerDTO) -> Optional[FailureAnswerResponse]:
        with Session(self.engine) as session:
            if not session.get(WorkflowDefinition, workflow_id):
                return None
            row = _failure_answer_row(workflow_id, data)
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError(f"Failure code '{data.code}' already exists on workflow {workflow_id}") from exc
            session.refresh(row)
            return FailureAnswerResponse.model_validate(row)

    def delete_failure_answer(self, failure_answer_id: str) -> bool:
        with Session(self.engine) as session:
            row = session.get(WorkflowFailureAnswer, failure_answer_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    # --- Questions ---

    def list_questions(self, workflow_id: str) -> Optional[List[QuestionResponse]]:
        with Session(self.engine) as session:
            if not session.get(WorkflowDefinition, workflow_id):
                return None
            rows = session.exec(
                select(WorkflowQuestion)
                .where(WorkflowQuestion.workflow_id == workflow_id)
                .order_by(WorkflowQuestion.order)
            ).all()
            return [QuestionResponse.model_validate(q) for q in rows]

    def add_question(self, workflow_id: str, data: QuestionDTO) -> Optional[QuestionResponse]:
        with Session(self.engine) as session:
            if not session.get(WorkflowDefinition, workflow_id):
                return None
            row = WorkflowQuestion(id=new_id("q_"), workflow_id=workflow_id, **data.model_dump())
            session.add(row)
            session.commit()
            session.refresh(row)
            return QuestionResponse.model_validate(row)
