from fastapi import APIRouter

from src.outcomes.config import settings
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.formtemplates.plugins.registry import all_plugins

router = APIRouter(prefix="", tags=["system"])


@router.get("/health")
async def health_check_v1() -> dict:
    """API v1 health endpoint."""
    return {"status": "ok", "version": "v1"}


@router.get("/system/info")
async def system_info_v1() -> dict:
    """Deployment facts useful when debugging an environment (no patient data)."""

    return {
        "environment": settings.app_env,
        "storage": type(repos.patient_repository).__name__,
        "scoring_plugins": len(all_plugins()),
        "api_auth": settings.enable_api_auth,
    }
