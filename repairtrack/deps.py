from typing import Optional

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import Engine

from repairtrack.config import settings
from repairtrack.models import User
from repairtrack.services.items import ItemRepository
from repairtrack.services.repairs import RepairService
from repairtrack.services.resolver import WorkflowResolver
from repairtrack.services.store import SqlWorkflowStore
from repairtrack.services.users import UserRepository
from repairtrack.services.workflows import WorkflowRepository

security = HTTPBearer(auto_error=False)


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def get_workflow_repo(engine: Engine = Depends(get_engine)) -> WorkflowRepository:
    return WorkflowRepository(engine)


def get_item_repo(engine: Engine = Depends(get_engine)) -> ItemRepository:
    return ItemRepository(engine)


def get_user_repo(engine: Engine = Depends(get_engine)) -> UserRepository:
    return UserRepository(engine)


def get_resolver(engine: Engine = Depends(get_engine)) -> WorkflowResolver:
    return WorkflowResolver(SqlWorkflowStore(engine))


def get_repair_service(
    engine: Engine = Depends(get_engine),
    resolver: WorkflowResolver = Depends(get_resolver),
    workflows: WorkflowRepository = Depends(get_workflow_repo),
) -> RepairService:
    return RepairService(engine, resolver, workflows)


def decode_identity_token(token: str) -> dict:
    """
    Verify a bearer token issued by the identity provider and return its claims.
    Raises JWTError on a bad signature, an expired token or a missing subject.
    """
    claims = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
    )
    if not claims.get("sub"):
        raise JWTError("token has no subject")
    return claims


async def current_subject(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> dict:
    if not credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        return decode_identity_token(credentials.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def current_user(
    claims: dict = Depends(current_subject),
    users: UserRepository = Depends(get_user_repo),
) -> User:
    """Authenticated user, mirrored into the local users table on every request."""
    return users.sync_user(
        external_id=str(claims["sub"]),
        email=claims.get("email") or "",
        name=claims.get("name"),
    )
