from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from repairtrack.deps import current_user, get_resolver, get_workflow_repo
from repairtrack.errors import StoreUnavailable, WorkflowNotConfigured
from repairtrack.models import RepairType
from repairtrack.schemas import (
    CreateWorkflowDTO,
    FailureAnswerDTO,
    FailureAnswerResponse,
    QuestionDTO,
    QuestionResponse,
    UpdateWorkflowDTO,
    WorkflowDetailDTO,
    WorkflowListDTO,
)
from repairtrack.services.resolver import WorkflowResolver
from repairtrack.services.workflows import WorkflowRepository
from repairtrack.util.pagination import clamp_limit, clamp_offset

router = APIRouter(dependencies=[Depends(current_user)])


@router.post("/workflows", response_model=WorkflowDetailDTO, status_code=status.HTTP_201_CREATED)
def create_workflow(data: CreateWorkflowDTO, repo: WorkflowRepository = Depends(get_workflow_repo)):
    return repo.create_workflow(data)


@router.get("/workflows", response_model=WorkflowListDTO)
def list_workflows(
    repair_type: Optional[RepairType] = None,
    sku: Optional[str] = None,
    is_active: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    repo: WorkflowRepository = Depends(get_workflow_repo),
):
    return repo.list_workflows(
        repair_type=repair_type,
        sku=sku,
        is_active=is_active,
        limit=clamp_limit(limit),
        offset=clamp_offset(offset),
    )


@router.get("/workflows/applicable", response_model=WorkflowDetailDTO)
def find_applicable_workflow(
    repair_type: RepairType,
    sku: Optional[str] = Query(default=None),
    resolver: WorkflowResolver = Depends(get_resolver),
    repo: WorkflowRepository = Depends(get_workflow_repo),
):
    """Workflow that governs a repair of ``repair_type`` on an item with ``sku``."""
    resolution = resolver.find_applicable_workflow(repair_type, sku)
    if resolution.failed:
        raise StoreUnavailable()
    if not resolution.found:
        raise WorkflowNotConfigured("No applicable workflow found")
    detail = repo.get_workflow(resolution.workflow.id)
    if not detail:
        raise WorkflowNotConfigured("No applicable workflow found")
    return detail


@router.get("/workflows/{workflow_id}", response_model=WorkflowDetailDTO)
def get_workflow(workflow_id: str, repo: WorkflowRepository = Depends(get_workflow_repo)):
    workflow = repo.get_workflow(workflow_id)
    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow


@router.put("/workflows/{workflow_id}", response_model=WorkflowDetailDTO)
def update_workflow(workflow_id: str, data: UpdateWorkflowDTO, repo: WorkflowRepository = Depends(get_workflow_repo)):
    workflow = repo.update_workflow(workflow_id, data)
    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow


@router.delete("/workflows/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workflow(workflow_id: str, repo: WorkflowRepository = Depends(get_workflow_repo)):
    if not repo.delete_workflow(workflow_id):
        raise HTTPException(status_code=404, detail="Workflow not found")
    return None


@router.get("/workflows/{workflow_id}/questions", response_model=List[QuestionResponse])
def list_questions(workflow_id: str, repo: WorkflowRepository = Depends(get_workflow_repo)):
    questions = repo.list_questions(workflow_id)
    if questions is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return questions


@router.post("/workflows/{workflow_id}/questions", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
def add_question(workflow_id: str, data: QuestionDTO, repo: WorkflowRepository = Depends(get_workflow_repo)):
    question = repo.add_question(workflow_id, data)
    if not question:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return question


@router.post(
    "/workflows/{workflow_id}/failure-answers",
    response_model=FailureAnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_failure_answer(workflow_id: str, data: FailureAnswerDTO, repo: WorkflowRepository = Depends(get_workflow_repo)):
    answer = repo.add_failure_answer(workflow_id, data)
    if not answer:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return answer


@router.delete("/failure-answers/{failure_answer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_failure_answer(failure_answer_id: str, repo: WorkflowRepository = Depends(get_workflow_repo)):
    if not repo.delete_failure_answer(failure_answer_id):
        raise HTTPException(status_code=404, detail="Failure answer not found")
    return None
