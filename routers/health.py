# routers/health.py

from fastapi import APIRouter, Request

from core.config import settings
from core.logging_config import logger
from core.supabase_client import ping_supabase

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


def _database_report(request: Request) -> dict:
    # The client is None when Supabase credentials were missing at startup
    client = getattr(request.app.state, "supabase", None)
    try:
        details = ping_supabase(client)
    except Exception as e:
        logger.error(f"Health check against Supabase failed: {e}")
        return {"service": "Supabase", "status": "error", "error": str(e)}

    return {
        "service": "Supabase",
        "status": details.get("status", "unknown"),
        "details": details,
    }


def _app_report() -> dict:
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
        "env": settings.ENV,
    }


# -----------------------------------------------------
# GET /health
# Combined summary for uptime monitors
# -----------------------------------------------------
@router.get("", summary="Overall health")
def health(request: Request):
    app_report = _app_report()
    db_report = _database_report(request)
    overall = "ok" if db_report["status"] == "ok" else "degraded"
    return {"status": overall, "app": app_report, "database": db_report}


# -----------------------------------------------------
# GET /health/db
# Per-table check of the Supabase tables the workflows use
# -----------------------------------------------------
@router.get("/db", summary="Supabase / DB health check")
def health_db(request: Request):
    """
    Queries a handful of workflow tables and reports row counts or the
    PostgREST error per table. `not_configured` means the service-role
    client was never built. Unauthenticated.
    """
    return _database_report(request)


@router.get("/app", summary="App health check")
def health_app():
    return _app_report()
