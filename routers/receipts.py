# routers/receipts.py

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.errors import APIError, NotFound, ValidationFailed, handle_supabase_error
from dependencies.clients import get_supabase
from services.payments import TRANSACTIONS

router = APIRouter(
    prefix="/api/transactions",
    tags=["Receipts"],
)

# Transaction row plus the owner fields printed on a receipt
RECEIPT_COLUMNS = (
    "*, property_contracts (contract_number, client_name, client_phone, client_email, client_address)"
)


def _day_after(value: str) -> str:
    try:
        return (date.fromisoformat(value[:10]) + timedelta(days=1)).isoformat()
    except ValueError:
        raise ValidationFailed(f"Invalid end_date: {value}", "Invalid date")


# -----------------------------------------------------
# GET /api/transactions/receipt
# -----------------------------------------------------
@router.get("/receipt", summary="Receipt data for one transaction or a date range")
def receipt(
    transaction_id: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    if transaction_id:
        rows = (
            client.table(TRANSACTIONS)
            .select(RECEIPT_COLUMNS)
            .eq("transaction_id", transaction_id)
            .limit(1)
            .execute()
        ).data
        if not rows:
            raise NotFound("Transaction not found", "Transaction not found")

        return {"success": True, "data": rows[0], "type": "single"}

    if start_date or end_date:
        query = client.table(TRANSACTIONS).select(RECEIPT_COLUMNS).order("transaction_date", desc=True)

        if start_date:
            query = query.gte("transaction_date", start_date)
        if end_date:
            # Inclusive of the whole end day
            query = query.lt("transaction_date", _day_after(end_date))

        try:
            transactions = query.execute().data or []
        except Exception as e:
            raise handle_supabase_error(e, "Failed to fetch transactions")

        return {
            "success": True,
            "data": transactions,
            "type": "range",
            "startDate": start_date,
            "endDate": end_date,
        }

    raise APIError(
        400,
        "Please provide either transaction_id or start_date/end_date parameters",
        "Please provide either transaction_id or start_date/end_date parameters",
    )
