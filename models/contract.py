# models/contract.py

from typing import Optional, Union
from pydantic import BaseModel


class ContractCreate(BaseModel):
    reservation_id: Optional[str] = None
    payment_plan_months: Optional[Union[int, str]] = None


class ContractTransfer(BaseModel):
    contract_id: Optional[str] = None
    new_user_id: Optional[str] = None
    new_client_name: Optional[str] = None
    new_client_email: Optional[str] = None
    new_client_phone: Optional[str] = None
    new_client_address: Optional[str] = None
    relationship: Optional[str] = None
    transfer_reason: Optional[str] = None
    transfer_notes: Optional[str] = None


class TransferRevert(BaseModel):
    contract_id: Optional[str] = None
    transfer_id: Optional[str] = None


class PlanChange(BaseModel):
    new_payment_plan_months: Optional[Union[int, str]] = None
    reason: Optional[str] = None
    changed_by: Optional[str] = None


# -------------------------------------------------
# Payments
# -------------------------------------------------
class WalkInPayment(BaseModel):
    schedule_id: Optional[str] = None
    contract_id: Optional[str] = None
    payment_type: str = "full"
    amount_paid: Optional[Union[float, str]] = None
    penalty_paid: Optional[float] = 0   # ignored; penalty is always computed
    payment_method: str = "cash"
    reference_number: Optional[str] = None
    check_number: Optional[str] = None
    bank_name: Optional[str] = None
    processed_by: Optional[str] = None
    processed_by_name: str = "System"
    notes: Optional[str] = None


class PaymentRevert(BaseModel):
    schedule_id: Optional[str] = None
