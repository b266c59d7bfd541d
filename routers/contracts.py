# routers/contracts.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from core.errors import ValidationFailed, handle_supabase_error
from core.logging_config import logger
from dependencies.clients import get_supabase
from models.contract import ContractCreate, ContractTransfer, PlanChange, TransferRevert
from services.contracts import (
    CONTRACTS,
    contract_details,
    contract_for_reservation,
    change_payment_plan,
    create_contract,
    fetch_contract,
    review_plan_change,
    revert_transfer,
    transfer_contract,
)

router = APIRouter(
    prefix="/api/contracts",
    tags=["Contracts"],
)


# -----------------------------------------------------
# GET /api/contracts?user_id=&status=&contract_number=
# -----------------------------------------------------
@router.get("", summary="List contracts with schedules and statistics")
def list_contracts(
    user_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    contract_number: Optional[str] = Query(None),
    client: Client = Depends(get_supabase),
):
    query = client.table(CONTRACTS).select("*").order("created_at", desc=True)

    if user_id:
        query = query.eq("user_id", user_id)
    if status:
        query = query.eq("contract_status", status)
    if contract_number:
        query = query.ilike("contract_number", f"%{contract_number}%")

    try:
        contracts = query.execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch contracts", status_code=400)

    logger.info(f"Found {len(contracts)} contracts")
    return {
        "success": True,
        "data": [contract_details(client, c) for c in contracts],
        "message": "Contracts fetched successfully",
    }


# -----------------------------------------------------
# GET /api/contracts/by-reservation?reservation_id=
# -----------------------------------------------------
@router.get("/by-reservation", summary="Contract for a reservation")
def get_by_reservation(reservation_id: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    if not reservation_id:
        raise ValidationFailed("Please provide reservation_id", "Missing reservation ID")

    contract = contract_for_reservation(client, reservation_id)
    if contract is None:
        return {
            "success": True,
            "data": None,
            "message": "No contract found for this reservation",
        }

    return {
        "success": True,
        "data": contract_details(client, contract, with_transfer=False),
        "message": "Contract fetched successfully",
    }


# -----------------------------------------------------
# POST /api/contracts/create
# -----------------------------------------------------
@router.post("/create", summary="Create a contract to sell from an approved reservation")
def create(payload: ContractCreate, client: Client = Depends(get_supabase)):
    result = create_contract(client, payload.reservation_id, payload.payment_plan_months)
    return {
        "success": True,
        "data": {
            "contract": result["contract"],
            "payment_schedules": result["payment_schedules"],
        },
        "message": "Contract created successfully with payment schedule!",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# POST /api/contracts/transfer
# -----------------------------------------------------
@router.post("/transfer", summary="Transfer contract ownership")
def transfer(payload: ContractTransfer, client: Client = Depends(get_supabase)):
    result = transfer_contract(client, payload.model_dump())
    return {
        "success": True,
        "data": {
            "contract": result["contract"],
            "transfer_history": result["transfer_history"],
        },
        "message": "Contract transferred successfully",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# POST /api/contracts/revert-transfer
# -----------------------------------------------------
@router.post("/revert-transfer", summary="Undo an ownership transfer")
def undo_transfer(payload: TransferRevert, client: Client = Depends(get_supabase)):
    result = revert_transfer(client, payload.contract_id, payload.transfer_id)
    return {
        "success": True,
        "data": {
            "contract": result["contract"],
            "original_owner": result["original_owner"],
        },
        "message": "Contract transfer reverted successfully",
        "side_effects": result["side_effects"],
    }


# -----------------------------------------------------
# POST /api/contracts/{contract_id}/validate-plan-change
# Dry run: nothing is written
# -----------------------------------------------------
@router.post("/{contract_id}/validate-plan-change", summary="Check whether a payment plan change is allowed")
def validate_plan_change(contract_id: str, payload: PlanChange, client: Client = Depends(get_supabase)):
    review = review_plan_change(client, contract_id, payload.new_payment_plan_months)
    return {
        "success": True,
        **review,
        "message": "Plan change is allowed" if review["allowed"]
        else "Plan change is not allowed due to validation errors",
    }


# -----------------------------------------------------
# POST /api/contracts/{contract_id}/change-plan
# -----------------------------------------------------
@router.post("/{contract_id}/change-plan", summary="Change a contract's payment plan")
def change_plan(contract_id: str, payload: PlanChange, client: Client = Depends(get_supabase)):
    result = change_payment_plan(
        client,
        contract_id,
        payload.new_payment_plan_months,
        reason=payload.reason,
        changed_by=payload.changed_by,
    )
    side_effects = result.pop("side_effects")
    return {
        "success": True,
        "data": result,
        "message": "Payment plan changed successfully!",
        "side_effects": side_effects,
    }


# -----------------------------------------------------
# GET /api/contracts/{contract_id}
# (declared last so the literal paths above win)
# -----------------------------------------------------
@router.get("/{contract_id}", summary="Contract with its payment schedule")
def get_contract(contract_id: str, client: Client = Depends(get_supabase)):
    contract = fetch_contract(client, contract_id)
    return {
        "success": True,
        "data": contract_details(client, contract, with_transfer=False),
        "message": "Contract fetched successfully",
    }
