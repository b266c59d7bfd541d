# routers/users.py

import re
from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.errors import APIError, Conflict, ValidationFailed, extract_supabase_error, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.roles import Role
from core.side_effects import non_critical
from core.supabase_client import list_auth_users
from core.utils import normalize_email
from dependencies.clients import get_supabase
from models.enums import ContractStatus
from models.user import SignupRequest, UserCreate, UserUpdate
from services.contracts import CONTRACTS

router = APIRouter(
    prefix="/api",
    tags=["Users"],
)

EMAIL_RE = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
MIN_PASSWORD_LENGTH = 6
BUYER_DIRECTORY = "buyer_home_owner_tbl"


# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def format_user(user) -> dict:
    """Flatten an auth user + metadata into the shape the staff screens use."""
    meta = getattr(user, "user_metadata", None) or {}
    first = meta.get("first_name") or ""
    last = meta.get("last_name") or ""

    return {
        "id": user.id,
        "email": user.email,
        "first_name": first,
        "last_name": last,
        "full_name": meta.get("full_name") or f"{first} {last}".strip(),
        "role": meta.get("role") or Role.home_owner.value,
        "role_id": meta.get("role_id"),
        "status": "inactive" if getattr(user, "banned_until", None) else "active",
        "phone": meta.get("phone"),
        "address": meta.get("address") or "",
        "branch": meta.get("branch"),
        "profile_photo": meta.get("profile_photo"),
        "created_at": getattr(user, "created_at", None),
        "updated_at": getattr(user, "updated_at", None),
        "last_sign_in_at": getattr(user, "last_sign_in_at", None),
        "email_verified": bool(getattr(user, "email_confirmed_at", None)),
    }


def _full_name(first: str, last: str) -> str:
    return f"{first.strip()} {last.strip()}"


# -----------------------------------------------------
# GET /api/users?role=
# -----------------------------------------------------
@router.get("/users", summary="List auth users")
def list_users(role: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    try:
        users = [format_user(u) for u in list_auth_users(client)]
    except Exception as e:
        raise handle_supabase_error(e, "Failed to load users")

    if role:
        wanted = role.strip().lower()
        users = [u for u in users if (u["role"] or "").lower() == wanted]

    return {
        "success": True,
        "data": users,
        "message": f"Loaded {len(users)} users successfully",
    }


# -----------------------------------------------------
# POST /api/users
# -----------------------------------------------------
@router.post("/users", summary="Create a staff or homeowner account")
def create_user(payload: UserCreate, client: Client = Depends(get_supabase)):
    if not all([payload.email, payload.password, payload.first_name, payload.last_name, payload.role]):
        raise ValidationFailed("Email, password, first name, last name, and role are required")

    role = Role.parse(payload.role)
    if role is None:
        raise ValidationFailed(
            f"Invalid role. Must be one of: {', '.join(Role.list())}",
            "Invalid role",
        )

    name = _full_name(payload.first_name, payload.last_name)
    metadata = {
        "first_name": payload.first_name.strip(),
        "last_name": payload.last_name.strip(),
        "full_name": name,
        "display_name": name,
        "role": role.value,
        "phone": payload.phone.strip() if payload.phone else None,
        "address": payload.address.strip() if payload.address else None,
        "branch": payload.branch,
        "email_verified": True,
    }

    try:
        resp = client.auth.admin.create_user({
            "email": normalize_email(payload.email),
            "password": payload.password,
            "email_confirm": True,
            "user_metadata": metadata,
        })
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create user", status_code=400)

    logger.info(f"User created: {resp.user.id} ({role.value})")
    return {
        "success": True,
        "data": format_user(resp.user),
        "message": "User created successfully",
    }


# -----------------------------------------------------
# PUT /api/users
# -----------------------------------------------------
@router.put("/users", summary="Update account metadata")
def update_user(payload: UserUpdate, client: Client = Depends(get_supabase)):
    if not payload.userId:
        raise ValidationFailed("User ID is required for update", "User ID is required")

    metadata = {}
    if payload.first_name is not None:
        metadata["first_name"] = payload.first_name.strip()
    if payload.last_name is not None:
        metadata["last_name"] = payload.last_name.strip()
    if payload.first_name and payload.last_name:
        metadata["full_name"] = metadata["display_name"] = _full_name(payload.first_name, payload.last_name)
    if payload.role is not None:
        role = Role.parse(payload.role)
        if role is None:
            raise ValidationFailed(
                f"Invalid role. Must be one of: {', '.join(Role.list())}",
                "Invalid role",
            )
        metadata["role"] = role.value
    for field in ("phone", "address", "branch"):
        value = getattr(payload, field)
        if value is not None:
            metadata[field] = value.strip() or None

    attributes = {"user_metadata": metadata}
    if payload.email:
        attributes["email"] = normalize_email(payload.email)

    try:
        resp = client.auth.admin.update_user_by_id(payload.userId, attributes)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update user", status_code=400)

    return {
        "success": True,
        "data": format_user(resp.user),
        "message": "User updated successfully",
    }


# -----------------------------------------------------
# DELETE /api/users?userId=
# -----------------------------------------------------
@router.delete("/users", summary="Delete an account")
def delete_user(userId: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    if not userId:
        raise ValidationFailed("User ID is required for deletion", "User ID is required")

    try:
        client.auth.admin.delete_user(userId)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to delete user", status_code=400)

    logger.info(f"User deleted: {userId}")
    return {"success": True, "message": "User deleted successfully"}


# -----------------------------------------------------
# POST /api/auth/signup (homeowner self sign-up)
# -----------------------------------------------------
@router.post("/auth/signup", status_code=201, summary="Homeowner self sign-up")
def signup(payload: SignupRequest, client: Client = Depends(get_supabase)):
    if not all([payload.firstName, payload.lastName, payload.email, payload.password]):
        raise ValidationFailed("Missing required fields")

    email = normalize_email(payload.email)
    if not EMAIL_RE.match(email):
        raise ValidationFailed("Invalid email format", "Invalid email format")

    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            "Invalid password",
        )

    name = _full_name(payload.firstName, payload.lastName)

    try:
        resp = client.auth.admin.create_user({
            "email": email,
            "password": payload.password,
            "email_confirm": True,
            "user_metadata": {
                "first_name": payload.firstName.strip(),
                "last_name": payload.lastName.strip(),
                "full_name": name,
                "display_name": name,
                "phone": payload.phone or "",
                "address": payload.address or "",
                "role": Role.home_owner.value,
            },
        })
    except Exception as e:
        detail = extract_supabase_error(e)
        if "already registered" in detail or "already exists" in detail:
            raise Conflict("Email already registered", "Email already registered")
        logger.error(f"Signup failed for {email}: {detail}")
        raise APIError(400, f"Signup failed: {detail}", detail)

    user = resp.user
    if user is None:
        raise APIError(500, "Failed to create user", "Failed to create user")

    non_critical(
        "user_registered_notification",
        create_notification,
        client,
        build_notification("USER_REGISTERED", {
            "userId": user.id,
            "fullName": name,
            "email": user.email,
            "phone": payload.phone or "",
            "address": payload.address or "",
        }),
    )

    logger.info(f"Homeowner registered: {user.email}")
    return {
        "success": True,
        "message": "Account created successfully",
        "user": {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata,
        },
    }


# -----------------------------------------------------
# GET /api/homeowners/users
# Auth accounts with the homeowner role, topped up from
# the buyer directory table
# -----------------------------------------------------
@router.get("/homeowners/users", summary="Homeowner accounts")
def homeowner_users(client: Client = Depends(get_supabase)):
    homeowners = []

    accounts = non_critical("auth_user_lookup", list_auth_users, client)
    for user in accounts.data or []:
        meta = getattr(user, "user_metadata", None) or {}
        if (meta.get("role") or "").strip().lower() != Role.home_owner.value:
            continue
        homeowners.append({
            "id": user.id,
            "full_name": meta.get("full_name") or (user.email or "").split("@")[0],
            "email": user.email,
            "phone": meta.get("phone") or "",
            "address": meta.get("address") or "",
            "user_metadata": meta,
        })

    directory = non_critical(
        "buyer_directory_lookup",
        lambda: client.table(BUYER_DIRECTORY).select("*").eq("status", "active").order("full_name").execute().data,
    )
    known = {normalize_email(h["email"]) for h in homeowners}
    for row in directory.data or []:
        if normalize_email(row.get("email")) in known:
            continue
        homeowners.append({
            "id": row.get("id"),
            "full_name": row.get("full_name"),
            "email": row.get("email"),
            "phone": row.get("phone") or "",
            "address": "",
            "source": "table",
        })

    logger.info(f"Found {len(homeowners)} homeowners")
    return {"success": True, "data": homeowners, "total": len(homeowners)}


# -----------------------------------------------------
# GET /api/homeowners/with-contracts
# -----------------------------------------------------
@router.get("/homeowners/with-contracts", summary="Homeowners grouped by contract email")
def homeowners_with_contracts(client: Client = Depends(get_supabase)):
    try:
        contracts = (
            client.table(CONTRACTS)
            .select("client_name, client_email, client_phone, client_address, property_id, property_title, contract_id")
            .in_("contract_status", [
                ContractStatus.active.value,
                ContractStatus.pending.value,
                ContractStatus.completed.value,
            ])
            .order("client_name")
            .execute()
        ).data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch contracts", status_code=400)

    # One directory read instead of one per homeowner
    auth_ids = {}
    for u in non_critical("auth_user_lookup", list_auth_users, client).data or []:
        if u.email:
            auth_ids[normalize_email(u.email)] = u.id

    homeowners = {}
    for contract in contracts:
        email = contract.get("client_email")
        if email not in homeowners:
            homeowners[email] = {
                "id": auth_ids.get(normalize_email(email)) or email,
                "full_name": contract.get("client_name"),
                "email": email,
                "phone": contract.get("client_phone") or "",
                "address": contract.get("client_address") or "",
                "has_contract": True,
                "properties": [],
            }

        owner = homeowners[email]
        if contract.get("property_id") and contract.get("property_title"):
            if not any(p["property_id"] == contract["property_id"] for p in owner["properties"]):
                owner["properties"].append({
                    "property_id": contract["property_id"],
                    "property_title": contract["property_title"],
                })

    data = list(homeowners.values())
    return {"success": True, "data": data, "total": len(data)}
