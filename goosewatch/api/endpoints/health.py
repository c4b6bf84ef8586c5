from typing import Annotated

from fastapi import APIRouter, Depends

from goosewatch.api.deps import get_store
from goosewatch.storage import ReportStore

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def storage_health(
    store: Annotated[ReportStore, Depends(get_store)],
) -> dict:
    healthy = await store.ping()
    return {"status": "ok" if healthy else "degraded", "storage": store.mode}
