from fastapi import APIRouter

from goosewatch.api.endpoints import campus, health, leaderboard, profiles, reports

router = APIRouter()

router.include_router(reports.router, prefix="/reports")
router.include_router(profiles.router, prefix="/profiles")
router.include_router(leaderboard.router, prefix="/leaderboard")
router.include_router(campus.router)
router.include_router(health.router)
