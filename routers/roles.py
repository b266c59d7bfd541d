# routers/roles.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.errors import ValidationFailed, handle_supabase_error
from core.logging_config import logger
from dependencies.clients import get_supabase
from models.role import RoleCreate, RoleUpdate

router = APIRouter(
    prefix="/api/roles",
    tags=["Roles"],
)

ROLES = "role"


@router.get("", summary="List roles")
def list_roles(client: Client = Depends(get_supabase)):
    try:
        roles = client.table(ROLES).select("*").order("role_id").execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to load roles")

    return {
        "success": True,
        "data": roles,
        "message": f"Loaded {len(roles)} roles successfully",
    }


@router.post("", summary="Create a role")
def create_role(payload: RoleCreate, client: Client = Depends(get_supabase)):
    rolename = (payload.rolename or "").strip()
    if not rolename:
        raise ValidationFailed("Role name is required", "Missing role name")

    try:
        role = client.table(ROLES).insert({"rolename": rolename}).execute().data[0]
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create role")

    logger.info(f"Role created: {rolename}")
    return {"success": True, "data": role, "message": "Role created successfully"}


@router.put("", summary="Rename a role")
def update_role(payload: RoleUpdate, client: Client = Depends(get_supabase)):
    if payload.roleId in (None, ""):
        raise ValidationFailed("Role ID is required", "Missing role ID")

    rolename = (payload.rolename or "").strip()
    if not rolename:
        raise ValidationFailed("Role name is required", "Missing role name")

    try:
        rows = (
            client.table(ROLES)
            .update({"rolename": rolename})
            .eq("role_id", payload.roleId)
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update role")

    return {
        "success": True,
        "data": rows[0] if rows else None,
        "message": "Role updated successfully",
    }


@router.delete("", summary="Delete a role")
def delete_role(roleId: Optional[int] = Query(None), client: Client = Depends(get_supabase)):
    if roleId is None:
        raise ValidationFailed("Role ID is required", "Missing role ID")

    try:
        client.table(ROLES).delete().eq("role_id", roleId).execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to delete role")

    logger.info(f"Role {roleId} deleted")
    return {"success": True, "message": "Role deleted successfully"}
