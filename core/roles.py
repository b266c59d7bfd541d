# core/roles.py

from typing import Dict, FrozenSet, List, Optional, Tuple

from models.enums import BaseStrEnum


# ============================================
# ROLES
# ============================================
class Role(BaseStrEnum):
    """Every role stored in auth user_metadata["role"]."""

    admin = "admin"
    customer_service = "customer service"
    sales_representative = "sales representative"
    collection = "collection"
    home_owner = "home owner"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """
        The single normalization point for role strings.
        Case and surrounding whitespace are ignored; unknown → None.
        """
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        normalized = " ".join(value.strip().lower().split())
        for role in cls:
            if role.value == normalized:
                return role
        return None


ADMIN = Role.admin
CS = Role.customer_service
SALES = Role.sales_representative
COLLECTION = Role.collection

STAFF_ROLES = frozenset({ADMIN, CS, SALES})
ALL_STAFF_ROLES = frozenset({ADMIN, CS, SALES, COLLECTION})


# ============================================
# ROUTE PREFIX → ALLOWED ROLES
# ============================================
# Declaration order is kept for readability; resolution is
# longest-prefix-first (see _RESOLUTION_ORDER).
ROUTE_ACCESS: List[Tuple[str, FrozenSet[Role]]] = [
    # Admin only
    ("/settings", frozenset({ADMIN})),
    ("/settings/users", frozenset({ADMIN})),

    # Admin + customer service
    ("/homeowners", frozenset({ADMIN, CS})),
    ("/staff", frozenset({ADMIN, CS})),
    ("/branches", frozenset({ADMIN, CS})),
    ("/homeowner-announcement", frozenset({ADMIN, CS})),

    # Front-office staff
    ("/services", STAFF_ROLES),
    ("/requests", STAFF_ROLES),
    ("/service-requests", STAFF_ROLES),
    ("/messages", STAFF_ROLES),
    ("/complaints", STAFF_ROLES),
    ("/announcements", STAFF_ROLES),
    ("/events", STAFF_ROLES),
    ("/payments", STAFF_ROLES),
    ("/inquiries", STAFF_ROLES),
    ("/client-inquiries", STAFF_ROLES),
    ("/client-reservation", STAFF_ROLES),
    ("/reservations", STAFF_ROLES),
    ("/property-reservation", STAFF_ROLES),
    ("/client-bookings", STAFF_ROLES),
    ("/properties", STAFF_ROLES),
    ("/properties/lot", STAFF_ROLES),
    ("/properties/proptype", STAFF_ROLES),
    ("/property-map", STAFF_ROLES),

    # Collection
    ("/billing", frozenset({ADMIN, CS, COLLECTION})),
    ("/transactions", frozenset({ADMIN, CS, COLLECTION})),
    ("/loans", frozenset({ADMIN, CS, COLLECTION})),

    # Any staff member (homeowners use the client portal)
    ("/dashboard", ALL_STAFF_ROLES),
    ("/location", ALL_STAFF_ROLES),
    ("/profile", ALL_STAFF_ROLES),
    ("/reports", ALL_STAFF_ROLES),
]

_RESOLUTION_ORDER = sorted(ROUTE_ACCESS, key=lambda entry: len(entry[0]), reverse=True)


# Routes that never require a session
PUBLIC_ROUTES = frozenset({
    "/",
    "/login",
    "/signup",
    "/forgot-password",
    "/reset-password",
    "/client-home",
    "/client-login",
    "/client-signup",
    "/client-bookings",
    "/client-account",
    "/client-requests",
    "/client-forgot-password",
    "/client-reset-password",
    "/client-complaints",
})


def is_public_route(path: str) -> bool:
    return path in PUBLIC_ROUTES or path.startswith("/client-")


def match_route(path: str) -> Optional[Tuple[str, FrozenSet[Role]]]:
    """Most specific table entry whose prefix the path starts with."""
    if not path:
        return None
    for prefix, roles in _RESOLUTION_ORDER:
        if path.startswith(prefix):
            return prefix, roles
    return None


def has_route_access(path: str, role) -> bool:
    """
    True when `role` may open `path`.
    Paths with no table entry are open to any signed-in role.
    """
    if not path or not role:
        return False

    parsed = Role.parse(role)
    entry = match_route(path)
    if entry is None:
        return True

    _, allowed = entry
    return parsed is not None and parsed in allowed


def allowed_roles_for(path: str) -> Optional[List[str]]:
    entry = match_route(path)
    if entry is None:
        return None
    return sorted(r.value for r in entry[1])


def get_access_denied_message(path: str) -> str:
    return (
        "You don't have permission to access this page. "
        f"Please contact your administrator if you need access to {path}."
    )


def role_table() -> Dict[str, List[str]]:
    """Serializable copy of the table for the client-side link filter."""
    return {prefix: sorted(r.value for r in roles) for prefix, roles in ROUTE_ACCESS}
