"""
Domain errors and their HTTP rendering.

Every error leaves the API with the same envelope:
    {"error": {"code": ..., "message": ..., "details": [...]}}
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import OperationalError


class RepairTrackError(Exception):
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundError(RepairTrackError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(RepairTrackError):
    code = "CONFLICT"
    status_code = 409


class ValidationFailed(RepairTrackError):
    code = "VALIDATION_FAILED"
    status_code = 422


class WorkflowNotConfigured(RepairTrackError):
    """No active workflow matches the repair. A configuration gap, not a fault."""

    code = "WORKFLOW_NOT_CONFIGURED"
    status_code = 422

    def __init__(self, message: str = "There is no Repair Workflow configured for this item.", **kwargs):
        super().__init__(message, **kwargs)


class StoreUnavailable(RepairTrackError):
    """The backing store could not be read (timeout, lost connection...)."""

    code = "STORE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "The workflow store is unavailable, please retry later.", **kwargs):
        super().__init__(message, **kwargs)


def error_body(code: str, message: str, details: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details or []}}


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RepairTrackError)
    async def repairtrack_error_handler(request: Request, exc: RepairTrackError):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(OperationalError)
    async def store_error_handler(request: Request, exc: OperationalError):
        logger.error("Database operation failed on {} {}: {}", request.method, request.url.path, exc)
        unavailable = StoreUnavailable()
        return JSONResponse(
            status_code=unavailable.status_code,
            content=error_body(unavailable.code, unavailable.message),
        )

    @app.exception_handler(Exception)
    async def default_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on {} {}", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL", "Unhandled error", [{"path": "", "msg": str(exc)}]),
        )
