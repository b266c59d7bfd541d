from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.email_utils import SMTPMailer
from core.errors import APIError
from core.logging_config import logger
from core.recaptcha import RecaptchaVerifier
from core.route_gate import RouteGateMiddleware
from core.supabase_client import create_supabase_client

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers import ALL_ROUTERS


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Futura Homes back office API: Supabase-powered property management",
    )

    # -------------------------------------------------
    # Middleware (last added runs first)
    # -------------------------------------------------
    app.add_middleware(RouteGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup: build shared collaborators once
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info("🚀 Starting Futura Homes back office API")
        validate_config_on_startup(settings)

        # Pre-set state (tests) wins over settings
        if getattr(app.state, "supabase", None) is None:
            app.state.supabase = create_supabase_client(settings)
        if getattr(app.state, "mailer", None) is None:
            app.state.mailer = SMTPMailer.from_settings(settings)
        if getattr(app.state, "recaptcha", None) is None:
            app.state.recaptcha = RecaptchaVerifier.from_settings(settings)

        logger.info("📍 Registered Routes:")
        for route in app.routes:
            methods = ",".join(sorted(getattr(route, "methods", None) or []))
            logger.info(f"➡️ {methods:10s} {getattr(route, 'path', route)}")

    @app.on_event("shutdown")
    async def on_shutdown():
        logger.info("Shutting down Futura Homes back office API")

    # -------------------------------------------------
    # Error handling (everything leaves as the envelope)
    # -------------------------------------------------
    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError):
        if exc.status_code in (401, 403, 500):
            logger.warning(f"HTTP {exc.status_code} at {request.url}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(f"HTTP {exc.status_code} at {request.url}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail), "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(p) for p in err.get('loc', []) if p != 'body')}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Invalid request", "error": "; ".join(errors)},
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error", "error": str(exc)},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    for router in ALL_ROUTERS:
        app.include_router(router)

    return app


# Create the global FastAPI instance
app = create_app()
