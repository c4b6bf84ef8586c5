from typing import Annotated

from fastapi import APIRouter, Depends

from goosewatch.api.deps import get_store
from goosewatch.core.campus import HABITATS
from goosewatch.schemas.campus import CampusBounds, Habitat
from goosewatch.storage import ReportStore

router = APIRouter(prefix="", tags=["campus"])


@router.get("/habitats", response_model=list[Habitat])
async def list_habitats() -> list[Habitat]:
    """Known goose habitats drawn on the map."""
    return HABITATS


@router.get("/campus-bounds", response_model=CampusBounds)
async def get_campus_bounds(
    store: Annotated[ReportStore, Depends(get_store)],
) -> CampusBounds:
    return store.bounds
