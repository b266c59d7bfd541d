# routers/route_access.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.roles import allowed_roles_for, get_access_denied_message, has_route_access, role_table
from dependencies.auth import CurrentUser, get_current_user

router = APIRouter(
    prefix="/api/route-access",
    tags=["Route Access"],
)


# -----------------------------------------------------
# GET /api/route-access?path=
# Link visibility check for the signed-in user
# -----------------------------------------------------
@router.get("", summary="May the current user open this page?")
def check_route_access(
    path: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
):
    if not path:
        return {
            "success": True,
            "data": {"role": current_user.raw_role, "routes": role_table()},
        }

    allowed = has_route_access(path, current_user.role)
    return {
        "success": True,
        "data": {
            "path": path,
            "role": current_user.raw_role,
            "allowed": allowed,
            "allowed_roles": allowed_roles_for(path),
        },
        "allowed": allowed,
        "message": None if allowed else get_access_denied_message(path),
    }
