# core/route_gate.py

from typing import Optional
from urllib.parse import quote

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from core.logging_config import logger
from core.roles import has_route_access, is_public_route
from dependencies.auth import resolve_session

SESSION_COOKIE = "sb-access-token"
DASHBOARD = "/dashboard"
CLIENT_HOME = "/client-home"

# Never gated: API handlers authorize themselves, the rest is tooling/assets
UNGATED_PREFIXES = ("/api", "/health", "/docs", "/openapi.json", "/redoc", "/_next", "/static")
STATIC_SUFFIXES = (".ico", ".png", ".jpg", ".jpeg", ".svg", ".gif", ".webp", ".css", ".js", ".map", ".txt")


def is_gated_path(path: str) -> bool:
    if path.startswith(UNGATED_PREFIXES) or path.lower().endswith(STATIC_SUFFIXES):
        return False
    return not is_public_route(path)


def session_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(SESSION_COOKIE)


def login_redirect(path: str) -> str:
    if path == DASHBOARD:
        return "/"
    return f"/login?redirectTo={quote(path, safe='/')}"


def denied_redirect(role) -> str:
    # Roles that cannot open the dashboard would bounce back here forever
    if has_route_access(DASHBOARD, role):
        return f"{DASHBOARD}?error=unauthorized"
    return CLIENT_HOME


class RouteGateMiddleware(BaseHTTPMiddleware):
    """
    Server-side navigation gate for page paths.

    Unauthenticated → login (or home for /dashboard).
    Authenticated without a role allowed by the route table →
    /dashboard?error=unauthorized, or the client portal for roles
    that cannot open the dashboard.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if not is_gated_path(path):
            return await call_next(request)

        client = getattr(request.app.state, "supabase", None)
        user = None
        if client is not None:
            user = await run_in_threadpool(resolve_session, client, session_token(request))

        if user is None:
            return RedirectResponse(login_redirect(path), status_code=307)

        if not has_route_access(path, user.role):
            logger.warning(f"Route gate: {user.email} ({user.raw_role}) denied {path}")
            return RedirectResponse(denied_redirect(user.role), status_code=307)

        return await call_next(request)
