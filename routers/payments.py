# routers/payments.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.errors import APIError
from dependencies.clients import get_supabase
from models.contract import PaymentRevert, WalkInPayment
from services.payments import (
    list_transactions,
    payment_details,
    record_walk_in_payment,
    revert_payment,
    transactions_summary,
)

router = APIRouter(
    prefix="/api/contracts/payment",
    tags=["Payments"],
)


# -----------------------------------------------------
# GET /api/contracts/payment/walk-in?schedule_id=
# -----------------------------------------------------
@router.get("/walk-in", summary="Installment with its transactions and current penalty")
def walk_in_details(schedule_id: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    return {
        "success": True,
        "data": payment_details(client, schedule_id),
    }


# -----------------------------------------------------
# POST /api/contracts/payment/walk-in
# -----------------------------------------------------
@router.post("/walk-in", summary="Record a walk-in (over the counter) payment")
def walk_in_payment(payload: WalkInPayment, client: Client = Depends(get_supabase)):
    result = record_walk_in_payment(client, payload.model_dump())
    return {
        "success": True,
        "data": {
            "transaction": result["transaction"],
            "updated_schedule": result["updated_schedule"],
            "updated_contract": result["updated_contract"],
        },
        "message": "Walk-in payment processed successfully",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# POST /api/contracts/payment/revert
# -----------------------------------------------------
@router.post("/revert", summary="Revert a paid installment to pending")
def revert(payload: PaymentRevert, client: Client = Depends(get_supabase)):
    result = revert_payment(client, payload.schedule_id)
    return {
        "success": True,
        "data": {
            "schedule_id": result["schedule_id"],
            "transactions_reverted": result["transactions_reverted"],
        },
        "message": "Payment reverted to pending successfully",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# GET /api/contracts/payment/history?contract_id=|schedule_id=
# -----------------------------------------------------
@router.get("/history", summary="Payment history for a contract or installment")
def history(
    contract_id: Optional[str] = Query(None),
    schedule_id: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    if not contract_id and not schedule_id:
        raise APIError(400, "Contract ID or Schedule ID is required", "Contract ID or Schedule ID is required")

    transactions = list_transactions(client, contract_id=contract_id, schedule_id=schedule_id)
    return {
        "success": True,
        "data": transactions,
        "summary": transactions_summary(transactions),
        "message": "Payment history fetched successfully",
    }


# -----------------------------------------------------
# GET /api/contracts/payment/transactions
# -----------------------------------------------------
@router.get("/transactions", summary="Filtered transaction report")
def transactions(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    payment_method: Optional[str] = Query(None),
    contract_id: Optional[str] = Query(None),
    schedule_id: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    rows = list_transactions(
        client,
        contract_id=contract_id,
        schedule_id=schedule_id,
        start_date=start_date,
        end_date=end_date,
        payment_status=payment_status,
        payment_method=payment_method,
    )
    return {
        "success": True,
        "data": rows,
        "summary": transactions_summary(rows),
        "message": "Transactions fetched successfully",
    }
