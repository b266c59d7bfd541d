# core/supabase_client.py

from typing import Optional

from supabase import create_client, Client

from core.config import Settings
from core.logging_config import logger


# ============================================================
# Supabase Client Factory (ALWAYS service role)
# ============================================================

def create_supabase_client(settings: Settings) -> Optional[Client]:
    """
    Build the service-role Supabase client.

    Called once from the application startup hook; the instance lives on
    `app.state.supabase` and reaches handlers through
    `dependencies.clients.get_supabase`. Returns None when credentials are
    missing so the app can still boot (health checks, docs).
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY  # MUST be service-role

    if not supabase_url or not supabase_key:
        logger.error("Missing Supabase credentials")
        logger.error(f"   URL: {supabase_url}")
        logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
        return None

    try:
        return create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


# ============================================================
# Ping Supabase for health checks
# ============================================================

HEALTH_TABLES = ["appointments", "property_reservations", "property_contracts", "notifications_tbl"]


def ping_supabase(client: Optional[Client]) -> dict:
    """
    Simple connectivity check.
    Does NOT query auth tables.
    """
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    results = {}
    for t in HEALTH_TABLES:
        try:
            res = client.table(t).select("*").limit(1).execute()
            results[t] = {
                "status": "ok",
                "rows_found": len(res.data or []),
            }
        except Exception as err:
            results[t] = {"status": "error", "detail": str(err)}

    overall = "ok" if all(r["status"] == "ok" for r in results.values()) else "degraded"
    return {
        "service": "Supabase",
        "status": overall,
        "tables": results,
    }


# ============================================================
# Auth admin helpers
# ============================================================

def extract_user_list(result):
    """Normalize auth.admin.list_users() output across client versions."""
    if isinstance(result, list):
        return result
    if isinstance(result, dict) and "users" in result:
        return result["users"]
    users_attr = getattr(result, "users", None)
    if users_attr is not None:
        return users_attr
    return []


def list_auth_users(client: Client) -> list:
    return extract_user_list(client.auth.admin.list_users())
