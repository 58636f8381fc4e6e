# tests/test_store_sqlmodel_unit.py
"""
SQLModel-backed workflow store on in-memory SQLite. No .db files are created.
"""

import pytest
from sqlmodel import Session

from repairtrack.db import build_engine, create_schema
from repairtrack.errors import StoreUnavailable
from repairtrack.models import WorkflowDefinition, WorkflowFailureAnswer
from repairtrack.services.resolver import ResolutionStatus, WorkflowResolver
from repairtrack.services.store import SqlWorkflowStore


@pytest.fixture()
def engine():
    eng = build_engine("sqlite://")
    create_schema(eng)
    return eng


@pytest.fixture()
def store(engine):
    with Session(engine) as session:
        session.add_all([
            WorkflowDefinition(
                id="w1", name="General", applies_to={"repairType": "TROLLEY_REPLACEMENT"},
                sop_url="https://docs.example.com/w1.pdf", version=1, is_active=True,
            ),
            WorkflowDefinition(
                id="w2", name="SKU123", applies_to={"repairType": "TROLLEY_REPLACEMENT", "sku": "SKU123"},
                sop_url="https://docs.example.com/w2.pdf", version=1, is_active=True,
            ),
            WorkflowDefinition(
                id="w3", name="Retired", applies_to={"repairType": "TROLLEY_REPLACEMENT"},
                sop_url="https://docs.example.com/w3.pdf", version=4, is_active=False,
            ),
            WorkflowDefinition(
                id="w4", name="Broken", applies_to="TROLLEY_REPLACEMENT",
                sop_url="https://docs.example.com/w4.pdf", version=9, is_active=True,
            ),
            WorkflowFailureAnswer(id="fa1", workflow_id="w2", code="PARTS", label="Parts unavailable"),
            WorkflowFailureAnswer(id="fa2", workflow_id="w2", code="DAMAGED", label="Beyond repair", requires_notes=True),
        ])
        session.commit()
    return SqlWorkflowStore(engine)


def test_lists_only_active_definitions(store):
    ids = sorted(w.id for w in store.list_active_workflow_definitions())
    assert ids == ["w1", "w2", "w4"]


def test_lists_failure_answers_of_one_workflow(store):
    answers = store.list_failure_answers("w2")
    assert sorted(a.code for a in answers) == ["DAMAGED", "PARTS"]
    assert store.list_failure_answers("w1") == []


def test_resolver_over_sql_store(store):
    resolver = WorkflowResolver(store)
    assert resolver.find_applicable_workflow("TROLLEY_REPLACEMENT", "SKU123").workflow.id == "w2"
    assert resolver.find_applicable_workflow("TROLLEY_REPLACEMENT", "SKU999").workflow.id == "w1"
    assert resolver.find_applicable_workflow("TROLLEY_REPLACEMENT").workflow.id == "w1"
    assert resolver.find_applicable_workflow("HANDLE_REPLACEMENT").status is ResolutionStatus.not_found


def test_unreachable_database_raises_store_unavailable():
    store = SqlWorkflowStore(build_engine("sqlite:////nonexistent/dir/repairtrack.db"))
    with pytest.raises(StoreUnavailable):
        store.list_active_workflow_definitions()
    with pytest.raises(StoreUnavailable):
        store.list_failure_answers("w1")


def test_missing_schema_is_a_store_failure_not_a_miss():
    resolver = WorkflowResolver(SqlWorkflowStore(build_engine("sqlite://")))
    result = resolver.find_applicable_workflow("TROLLEY_REPLACEMENT")
    assert result.status is ResolutionStatus.failed
