from typing import Annotated

from fastapi import APIRouter, Depends

from goosewatch.api.deps import get_store
from goosewatch.core.exceptions import NotFoundError
from goosewatch.schemas.profile import ProfileResponse, ProfileUpdate
from goosewatch.storage import ReportStore

router = APIRouter(prefix="", tags=["profiles"])


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    store: Annotated[ReportStore, Depends(get_store)],
) -> ProfileResponse:
    profile = await store.get_profile_by_id(user_id)
    if profile is None:
        raise NotFoundError("Profile not found", resource="profile")
    return profile


@router.put("/{user_id}", response_model=ProfileResponse)
async def update_profile(
    user_id: str,
    profile_data: ProfileUpdate,
    store: Annotated[ReportStore, Depends(get_store)],
) -> ProfileResponse:
    """Create or replace a profile. createdAt is kept across updates."""
    return await store.upsert_profile({"id": user_id, **profile_data.model_dump()})
