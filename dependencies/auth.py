from typing import Collection, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from core.errors import APIError, Forbidden, extract_supabase_error
from core.logging_config import logger
from core.roles import Role
from dependencies.clients import get_supabase


bearer_scheme = HTTPBearer()


# ============================================================
# Current User Model
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[Role] = None
    raw_role: Optional[str] = None

    first_name: Optional[str] = None
    last_name: Optional[str] = None


def _to_current_user(auth_user) -> CurrentUser:
    metadata = auth_user.user_metadata or {}
    raw_role = metadata.get("role")
    return CurrentUser(
        id=auth_user.id,
        email=auth_user.email,
        role=Role.parse(raw_role),
        raw_role=raw_role,
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
    )


def resolve_session(client: Client, token: Optional[str]) -> Optional[CurrentUser]:
    """
    Validate an access token via Supabase GoTrue.
    Returns None for a missing, invalid or expired token.
    """
    if not token:
        return None

    try:
        auth_resp = client.auth.get_user(token)
    except Exception as e:
        logger.debug(f"Token rejected: {extract_supabase_error(e)}")
        return None

    if not auth_resp or not auth_resp.user:
        return None

    return _to_current_user(auth_resp.user)


# ============================================================
# AUTH DECODING (bearer token → user + metadata role)
# ============================================================
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    client: Client = Depends(get_supabase),
) -> CurrentUser:
    user = resolve_session(client, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# ============================================================
# ACTOR ROLE LOOKUP (actions that name their actor in the body)
# ============================================================
def lookup_user_role(client: Client, user_id: str) -> Optional[str]:
    """
    Raw metadata role of an auth user (lowercased), or None when the
    user has no role. Raises 400 when the lookup itself fails.
    """
    try:
        resp = client.auth.admin.get_user_by_id(user_id)
    except Exception as e:
        logger.warning(f"Role lookup failed for {user_id}: {extract_supabase_error(e)}")
        raise APIError(400, "Failed to verify user role", extract_supabase_error(e))

    user = getattr(resp, "user", None)
    if user is None:
        raise APIError(400, "Failed to verify user role", "User not found")

    role = (user.user_metadata or {}).get("role")
    return role.strip().lower() if isinstance(role, str) else None


def require_actor_role(
    client: Client,
    actor_id: Optional[str],
    allowed: Collection[Role],
    action: str,
) -> Role:
    """
    Resolve the acting user's role and check it against `allowed`.
    403 names the role that was found.
    """
    if not actor_id:
        raise Forbidden(f"You do not have permission to {action}. Your role: None")

    raw_role = lookup_user_role(client, actor_id)
    role = Role.parse(raw_role)

    if role is None or role not in allowed:
        raise Forbidden(f"You do not have permission to {action}. Your role: {raw_role}")

    return role
