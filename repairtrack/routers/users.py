from fastapi import APIRouter, Depends

from repairtrack.deps import current_user
from repairtrack.models import User
from repairtrack.schemas import UserInfo

router = APIRouter()


@router.get("/users/me", response_model=UserInfo)
def me(user: User = Depends(current_user)):
    return user
