from fastapi import APIRouter
from cla_bot.api.endpoints import github_router, health_router, signatures_router

router = APIRouter()

router.include_router(github_router, tags=["github"])
router.include_router(signatures_router, tags=["signatures"])
router.include_router(health_router, prefix="/health", tags=["health"])
