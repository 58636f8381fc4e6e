from fastapi import APIRouter, Depends, HTTPException, Query, status

from repairtrack.deps import current_user, get_item_repo
from repairtrack.schemas import CreateItemDTO, ItemResponse, ScanItemResponse
from repairtrack.services.items import ItemRepository

router = APIRouter(dependencies=[Depends(current_user)])


@router.post("/items", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(data: CreateItemDTO, repo: ItemRepository = Depends(get_item_repo)):
    return repo.create_item(data)


@router.get("/items/scan", response_model=ScanItemResponse)
def scan_item(lp: str = Query(min_length=1), repo: ItemRepository = Depends(get_item_repo)):
    result = repo.scan_item(lp)
    if not result:
        raise HTTPException(status_code=404, detail=f"No item found with license plate: {lp.strip()}")
    return result
