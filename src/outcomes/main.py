import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.outcomes.api.v1.routes_access import router as access_router_v1
from src.outcomes.api.v1.routes_cases import router as cases_router_v1
from src.outcomes.api.v1.routes_codes import router as codes_router_v1
from src.outcomes.api.v1.routes_consultations import router as consultations_router_v1
from src.outcomes.api.v1.routes_departments import router as departments_router_v1
from src.outcomes.api.v1.routes_forms import router as forms_router_v1
from src.outcomes.api.v1.routes_kiosks import router as kiosks_router_v1
from src.outcomes.api.v1.routes_patients import router as patients_router_v1
from src.outcomes.api.v1.routes_registration import public_router as registration_public_router_v1
from src.outcomes.api.v1.routes_registration import router as registration_router_v1
from src.outcomes.api.v1.routes_scoring import router as scoring_router_v1
from src.outcomes.api.v1.routes_statistics import router as statistics_router_v1
from src.outcomes.api.v1.routes_studies import router as studies_router_v1
from src.outcomes.api.v1.routes_surgeries import router as surgeries_router_v1
from src.outcomes.api.v1.routes_system import router as system_router_v1
from src.outcomes.api.v1.routes_templates import department_router as department_templates_router_v1
from src.outcomes.api.v1.routes_templates import router as templates_router_v1
from src.outcomes.api.v1.routes_users import auth_router as auth_router_v1
from src.outcomes.api.v1.routes_users import router as users_router_v1
from src.outcomes.config import settings
from src.outcomes.errors import ServiceError
from src.outcomes.infra.db.bootstrap import init_sql_repositories
from src.outcomes.services.formtemplates.service import form_template_service

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Patient Outcomes API")


@app.on_event("startup")
async def on_startup() -> None:
    """Switch to the SQL document store if configured, then register plugin templates."""

    init_sql_repositories()
    form_template_service.ensure_plugin_templates()


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled service error on %s: %s", request.url.path, exc.message)
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


# Origins from CORS_ALLOW_ORIGINS; "*" unless configured.
allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Liveness probe."""
    return {"status": "ok"}


# Versioned API routers
app.include_router(system_router_v1, prefix="/api/v1")
app.include_router(patients_router_v1, prefix="/api/v1")
app.include_router(cases_router_v1, prefix="/api/v1")
app.include_router(surgeries_router_v1, prefix="/api/v1")
app.include_router(consultations_router_v1, prefix="/api/v1")
app.include_router(forms_router_v1, prefix="/api/v1")
app.include_router(access_router_v1, prefix="/api/v1")
app.include_router(templates_router_v1, prefix="/api/v1")
app.include_router(department_templates_router_v1, prefix="/api/v1")
app.include_router(codes_router_v1, prefix="/api/v1")
app.include_router(kiosks_router_v1, prefix="/api/v1")
app.include_router(users_router_v1, prefix="/api/v1")
app.include_router(auth_router_v1, prefix="/api/v1")
app.include_router(registration_router_v1, prefix="/api/v1")
app.include_router(registration_public_router_v1, prefix="/api/v1")
app.include_router(studies_router_v1, prefix="/api/v1")
app.include_router(departments_router_v1, prefix="/api/v1")
app.include_router(scoring_router_v1, prefix="/api/v1")
app.include_router(statistics_router_v1, prefix="/api/v1")
