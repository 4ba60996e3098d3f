from .github import router as github_router
from .health import router as health_router
from .signatures import router as signatures_router

__all__ = ["github_router", "health_router", "signatures_router"]
