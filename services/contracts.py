# services/contracts.py

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from supabase import Client

from core.errors import NotFound, StateConflict, ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.roles import Role
from core.side_effects import SideEffectResult, non_critical
from core.supabase_client import list_auth_users
from core.utils import normalize_email
from models.enums import ContractStatus, PaymentStatus, ReservationStatus

CONTRACTS = "property_contracts"
SCHEDULES = "contract_payment_schedules"
TRANSFERS = "contract_transfer_history"
PLAN_CHANGES = "contract_plan_changes"
RESERVATIONS = "property_reservations"
PROPERTIES = "property_info_tbl"

DOWNPAYMENT_PERCENT = 10.0
BANK_FINANCING_PERCENT = 90.0
SCHEDULE_GRACE_DAYS = 7
MAX_PLAN_MONTHS = 60


# -----------------------------------------------------
# Date helpers
# -----------------------------------------------------
def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic, clamped to the last day of the target month."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


# -----------------------------------------------------
# Lookups
# -----------------------------------------------------
def fetch_contract(client: Client, contract_id: str) -> dict:
    rows = client.table(CONTRACTS).select("*").eq("contract_id", contract_id).limit(1).execute().data
    if not rows:
        raise NotFound("Contract not found", "Contract not found")
    return rows[0]


def contract_for_reservation(client: Client, reservation_id: str) -> Optional[dict]:
    rows = client.table(CONTRACTS).select("*").eq("reservation_id", reservation_id).limit(1).execute().data
    return rows[0] if rows else None


def contract_for_user(client: Client, user_id: str) -> Optional[dict]:
    rows = client.table(CONTRACTS).select("*").eq("user_id", user_id).limit(1).execute().data
    return rows[0] if rows else None


def schedules_for(client: Client, contract_id: str) -> List[dict]:
    return (
        client.table(SCHEDULES)
        .select("*")
        .eq("contract_id", contract_id)
        .order("installment_number")
        .execute()
    ).data or []


def latest_transfer(client: Client, contract_id: str) -> Optional[dict]:
    rows = (
        client.table(TRANSFERS)
        .select("*")
        .eq("contract_id", contract_id)
        .order("transferred_at", desc=True)
        .limit(1)
        .execute()
    ).data
    return rows[0] if rows else None


# -----------------------------------------------------
# Statistics
# -----------------------------------------------------
def contract_statistics(contract: dict, schedules: List[dict]) -> dict:
    paid = sum(1 for s in schedules if s.get("payment_status") == PaymentStatus.paid)
    pending = sum(1 for s in schedules if s.get("payment_status") == PaymentStatus.pending)
    overdue = sum(1 for s in schedules if s.get("is_overdue"))

    total_paid = sum(float(s.get("paid_amount") or 0) for s in schedules)
    target = float(contract.get("remaining_downpayment") or 0)
    progress = round(total_paid / target * 100) if target > 0 else 100

    return {
        "total_installments": len(schedules),
        "paid_installments": paid,
        "pending_installments": pending,
        "overdue_installments": overdue,
        "payment_progress_percent": progress,
    }


def next_payment(schedules: List[dict]) -> Optional[dict]:
    return next((s for s in schedules if s.get("payment_status") == PaymentStatus.pending), None)


def contract_details(client: Client, contract: dict, with_transfer: bool = True) -> dict:
    schedules = schedules_for(client, contract["contract_id"])
    details = {
        **contract,
        "payment_schedules": schedules,
        "statistics": contract_statistics(contract, schedules),
        "next_payment": next_payment(schedules),
    }
    if with_transfer:
        details["transfer_history"] = latest_transfer(client, contract["contract_id"])
    return details


# -----------------------------------------------------
# Creation
# -----------------------------------------------------
def contract_number_for(reservation: dict, year: int) -> str:
    tracking = reservation.get("tracking_number")
    if tracking:
        suffix = tracking.replace("TRK-", "")
    else:
        suffix = reservation["reservation_id"][:8].upper()
    return f"CTS-{year}-{suffix}"


def build_payment_schedules(
    contract_id: str,
    months: int,
    monthly_installment: float,
    first_due: date,
    grace_days: int = SCHEDULE_GRACE_DAYS,
    first_number: int = 1,
) -> List[dict]:
    last_number = first_number + months - 1
    schedules = []
    for offset in range(months):
        due = add_months(first_due, offset)
        number = first_number + offset
        schedules.append({
            "contract_id": contract_id,
            "installment_number": number,
            "installment_description": f"Monthly Payment {number} of {last_number}",
            "scheduled_amount": monthly_installment,
            "paid_amount": 0,
            "remaining_amount": monthly_installment,
            "due_date": due.isoformat(),
            "grace_period_end_date": (due + timedelta(days=grace_days)).isoformat(),
            "payment_status": PaymentStatus.pending.value,
            "is_overdue": False,
            "days_overdue": 0,
            "penalty_amount": 0,
        })
    return schedules


def _property_price(client: Client, property_id: Optional[str]) -> float:
    if not property_id:
        return 0.0
    rows = (
        client.table(PROPERTIES)
        .select("property_price, property_downprice")
        .eq("property_id", property_id)
        .limit(1)
        .execute()
    ).data
    return float((rows[0].get("property_price") if rows else 0) or 0)


def create_contract(
    client: Client,
    reservation_id: Optional[str],
    payment_plan_months,
    now: Optional[datetime] = None,
) -> dict:
    if not reservation_id or not payment_plan_months:
        raise ValidationFailed("Please provide reservation_id and payment_plan_months")

    try:
        months = int(payment_plan_months)
    except (TypeError, ValueError):
        raise ValidationFailed("Payment plan must be between 1 and 60 months", "Invalid payment plan")

    if months < 1 or months > MAX_PLAN_MONTHS:
        raise ValidationFailed("Payment plan must be between 1 and 60 months", "Invalid payment plan")

    reservations = (
        client.table(RESERVATIONS)
        .select("*")
        .eq("reservation_id", reservation_id)
        .eq("status", ReservationStatus.approved.value)
        .limit(1)
        .execute()
    ).data
    if not reservations:
        raise NotFound("Reservation not found or not approved", "Reservation not found")
    reservation = reservations[0]

    existing = contract_for_reservation(client, reservation_id)
    if existing:
        raise StateConflict(
            f"Contract {existing.get('contract_number')} already exists for this reservation",
            "Contract already exists",
            data={"contract_id": existing.get("contract_id"), "contract_number": existing.get("contract_number")},
        )

    now = now or datetime.now(timezone.utc)
    price = _property_price(client, reservation.get("property_id"))
    fee_paid = float(reservation.get("reservation_fee") or 0)
    downpayment_total = price * DOWNPAYMENT_PERCENT / 100
    remaining_downpayment = downpayment_total - fee_paid
    monthly_installment = remaining_downpayment / months
    bank_financing = price * BANK_FINANCING_PERCENT / 100

    first_due = add_months(now.date(), 1)
    final_due = add_months(first_due, months - 1)

    payload = {
        "contract_number": contract_number_for(reservation, now.year),
        "reservation_id": reservation_id,
        "property_id": reservation.get("property_id"),
        "property_title": reservation.get("property_title"),
        "property_price": price,
        "user_id": reservation.get("user_id"),
        "client_name": reservation.get("client_name"),
        "client_email": reservation.get("client_email"),
        "client_phone": reservation.get("client_phone"),
        "client_address": reservation.get("client_address"),
        "total_contract_price": price,
        "downpayment_percentage": DOWNPAYMENT_PERCENT,
        "downpayment_total": downpayment_total,
        "reservation_fee_paid": fee_paid,
        "remaining_downpayment": remaining_downpayment,
        "payment_plan_months": months,
        "monthly_installment": monthly_installment,
        "bank_financing_percentage": BANK_FINANCING_PERCENT,
        "bank_financing_amount": bank_financing,
        "downpayment_status": "in_progress" if remaining_downpayment > 0 else "completed",
        "total_paid_amount": 0,
        "remaining_balance": remaining_downpayment,
        "contract_status": ContractStatus.active.value,
        "contract_signed_date": now.isoformat(),
        "first_installment_date": first_due.isoformat(),
        "final_installment_date": final_due.isoformat(),
    }

    try:
        contract = client.table(CONTRACTS).insert(payload).execute().data[0]
    except Exception as e:
        raise handle_supabase_error(e, "Failed to create contract", status_code=400)

    contract_id = contract["contract_id"]
    logger.info(f"Contract {contract['contract_number']} created ({months} months)")

    try:
        schedules = (
            client.table(SCHEDULES)
            .insert(build_payment_schedules(contract_id, months, monthly_installment, first_due))
            .execute()
        ).data or []
    except Exception as e:
        # Compensate: no contract without its schedule
        client.table(CONTRACTS).delete().eq("contract_id", contract_id).execute()
        logger.warning(f"Rolled back contract {contract_id} after schedule failure")
        raise handle_supabase_error(e, "Failed to create payment schedules", status_code=400)

    notification = non_critical(
        "contract_created_notification",
        create_notification,
        client,
        build_notification("CONTRACT_CREATED", {
            "contractId": contract_id,
            "contractNumber": contract["contract_number"],
            "clientName": contract.get("client_name"),
            "propertyTitle": contract.get("property_title"),
        }),
    )

    return {"contract": contract, "payment_schedules": schedules, "side_effects": [notification]}


# -----------------------------------------------------
# Payment plan changes
# -----------------------------------------------------
def parse_plan_months(value, **extra) -> int:
    if not value:
        raise ValidationFailed("Please provide new_payment_plan_months", "Missing new_payment_plan_months")

    try:
        months = int(value)
    except (TypeError, ValueError):
        months = 0

    if months < 1 or months > MAX_PLAN_MONTHS:
        raise ValidationFailed(
            "Payment plan must be between 1 and 60 months", "Invalid payment plan", **extra
        )
    return months


def plan_change_errors(contract: dict, schedules: List[dict], months: int) -> List[str]:
    """Every business rule the change breaks; empty means allowed."""
    errors = []

    status = contract.get("contract_status")
    if status != ContractStatus.active:
        errors.append(f"Contract status is '{status}'. Only active contracts can be modified.")

    downpayment = contract.get("downpayment_status")
    if downpayment == "completed":
        errors.append("Downpayment is already completed. Plan change is not allowed.")
    elif downpayment == "defaulted":
        errors.append("Contract is in defaulted status. Plan change is not allowed.")

    paid = [s for s in schedules if s.get("payment_status") == PaymentStatus.paid]
    if schedules and len(paid) == len(schedules):
        errors.append("All installments are already paid. Plan change is not allowed.")

    if contract.get("payment_plan_months") == months:
        errors.append(f"Contract already has a {months}-month payment plan.")

    return errors


def _first_unpaid_due(pending: List[dict], today: date) -> date:
    if pending and pending[0].get("due_date"):
        return date.fromisoformat(str(pending[0]["due_date"])[:10])
    return add_months(today, 1)


def review_plan_change(client: Client, contract_id: str, new_months, today: Optional[date] = None) -> dict:
    """Dry run of change_payment_plan: rule check plus the old/new plan side by side."""
    months = parse_plan_months(
        new_months,
        allowed=False,
        validation_errors=["Payment plan months must be between 1 and 60"],
    )
    contract = fetch_contract(client, contract_id)
    schedules = schedules_for(client, contract_id)

    errors = plan_change_errors(contract, schedules, months)
    overdue = sum(1 for s in schedules if s.get("is_overdue"))
    warnings = []
    if overdue:
        warnings.append(
            f"There are {overdue} overdue payment(s). Please settle overdue amounts before changing plan."
        )

    pending = [s for s in schedules if s.get("payment_status") == PaymentStatus.pending]
    paid_count = sum(1 for s in schedules if s.get("payment_status") == PaymentStatus.paid)
    remaining = float(contract.get("remaining_balance") or 0)
    old_installment = float(contract.get("monthly_installment") or 0)
    new_installment = remaining / months

    new_final = None
    if pending:
        new_final = add_months(_first_unpaid_due(pending, today or date.today()), months - 1).isoformat()

    difference = new_installment - old_installment
    change_percent = round(difference / old_installment * 100, 2) if old_installment else None

    return {
        "allowed": not errors,
        "validation_errors": errors,
        "warnings": warnings,
        "current_plan": {
            "payment_plan_months": contract.get("payment_plan_months"),
            "monthly_installment": old_installment,
            "remaining_balance": remaining,
            "paid_installments": paid_count,
            "pending_installments": len(pending),
            "overdue_installments": overdue,
            "final_installment_date": contract.get("final_installment_date"),
        },
        "proposed_plan": {
            "payment_plan_months": months,
            "monthly_installment": new_installment,
            "remaining_balance": remaining,
            "new_final_installment_date": new_final,
        },
        "impact": {
            "monthly_payment_difference": difference,
            "monthly_payment_change_percent": change_percent,
            "schedules_to_recalculate": len(pending),
        },
    }


def change_payment_plan(
    client: Client,
    contract_id: str,
    new_months,
    reason: Optional[str] = None,
    changed_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Spread the remaining balance over a new number of months.

    Paid installments stay; pending ones are replaced by a fresh run
    numbered after the paid ones. The contract row is swapped on its
    current plan length, and restored if the schedule rewrite fails.
    """
    months = parse_plan_months(new_months)
    contract = fetch_contract(client, contract_id)
    schedules = schedules_for(client, contract_id)

    errors = plan_change_errors(contract, schedules, months)
    if errors:
        raise ValidationFailed("Plan change is not allowed", "Validation failed", validation_errors=errors)

    now = now or datetime.now(timezone.utc)
    paid = [s for s in schedules if s.get("payment_status") == PaymentStatus.paid]
    pending = [s for s in schedules if s.get("payment_status") == PaymentStatus.pending]

    new_installment = float(contract.get("remaining_balance") or 0) / months
    first_due = _first_unpaid_due(pending, now.date())
    final_due = add_months(first_due, months - 1)

    old_plan = {
        "payment_plan_months": contract.get("payment_plan_months"),
        "monthly_installment": contract.get("monthly_installment"),
        "final_installment_date": contract.get("final_installment_date"),
    }
    new_plan = {
        "payment_plan_months": months,
        "monthly_installment": new_installment,
        "final_installment_date": final_due.isoformat(),
    }

    try:
        updated = (
            client.table(CONTRACTS)
            .update({**new_plan, "updated_at": now.isoformat()})
            .eq("contract_id", contract_id)
            .eq("payment_plan_months", old_plan["payment_plan_months"])
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update contract", status_code=400)

    if not updated:
        raise StateConflict(
            "Contract payment plan was changed by another request. Please reload and try again.",
            "Concurrent plan change",
        )

    def restore_contract():
        client.table(CONTRACTS).update(old_plan).eq("contract_id", contract_id).execute()
        logger.warning(f"Restored plan of contract {contract_id} after schedule failure")

    if pending:
        try:
            (
                client.table(SCHEDULES)
                .delete()
                .in_("schedule_id", [s["schedule_id"] for s in pending])
                .eq("payment_status", PaymentStatus.pending.value)
                .execute()
            )
        except Exception as e:
            restore_contract()
            raise handle_supabase_error(e, "Failed to delete old payment schedules", status_code=400)

    try:
        created = (
            client.table(SCHEDULES)
            .insert(build_payment_schedules(
                contract_id, months, new_installment, first_due, first_number=len(paid) + 1
            ))
            .execute()
        ).data or []
    except Exception as e:
        restore_contract()
        if pending:
            non_critical(
                "restore_pending_schedules",
                lambda: client.table(SCHEDULES).insert(pending).execute().data,
            )
        raise handle_supabase_error(e, "Failed to create new payment schedules", status_code=400)

    audit = non_critical(
        "plan_change_audit",
        lambda: client.table(PLAN_CHANGES).insert({
            "contract_id": contract_id,
            "old_payment_plan_months": old_plan["payment_plan_months"],
            "new_payment_plan_months": months,
            "old_monthly_installment": old_plan["monthly_installment"],
            "new_monthly_installment": new_installment,
            "old_final_installment_date": old_plan["final_installment_date"],
            "new_final_installment_date": new_plan["final_installment_date"],
            "reason": reason or "No reason provided",
            "changed_by": changed_by,
            "created_at": now.isoformat(),
        }).execute().data,
    )

    logger.info(
        f"Contract {contract.get('contract_number')} plan changed "
        f"{old_plan['payment_plan_months']} -> {months} months"
    )

    return {
        "contract": updated[0],
        "old_payment_schedules": paid,
        "new_payment_schedules": created,
        "summary": {
            "old_plan": old_plan,
            "new_plan": new_plan,
            "changes": {
                "monthly_payment_difference": new_installment - float(old_plan["monthly_installment"] or 0),
                "schedules_deleted": len(pending),
                "schedules_created": len(created),
                "paid_schedules_kept": len(paid),
            },
        },
        "side_effects": [audit],
    }


# -----------------------------------------------------
# Ownership transfer
# -----------------------------------------------------
def _auth_user_id_by_email(client: Client, email: Optional[str]) -> Optional[str]:
    wanted = normalize_email(email)
    if not wanted:
        return None
    for user in list_auth_users(client):
        if normalize_email(user.email) == wanted:
            return user.id
    return None


def _owner_notice(title: str, message: str, icon: str, contract: dict, kind: str, extra: dict) -> dict:
    return {
        "type": kind,
        "title": title,
        "message": message,
        "icon": icon,
        "priority": "high",
        "recipient_role": Role.home_owner.value,
        "source_table": CONTRACTS,
        "source_table_display_name": "Contract Transfer" if kind == "contract_transfer" else "Contract Transfer Revert",
        "action_url": "/certified-homeowner",
        "data": {
            "contract_id": contract.get("contract_id"),
            "contract_number": contract.get("contract_number"),
            "property_title": contract.get("property_title"),
            "client_action_url": "/client-contract-to-sell",
            **extra,
        },
    }


def _notify_owner(client: Client, user_id: Optional[str], notice: dict) -> SideEffectResult:
    if not user_id:
        return SideEffectResult(name="owner_notification", ok=False, error="Owner has no account")
    return create_notification(client, notice, recipient_id=user_id)


def transfer_contract(client: Client, body: dict, now: Optional[datetime] = None) -> dict:
    required = ("contract_id", "new_client_name", "new_client_email", "relationship", "transfer_reason")
    if any(not body.get(k) for k in required):
        raise ValidationFailed("Missing required fields")

    contract_id = body["contract_id"]
    new_user_id = body.get("new_user_id")
    stamp = (now or datetime.now(timezone.utc)).isoformat()

    contract = fetch_contract(client, contract_id)
    status = contract.get("contract_status")
    if status in (ContractStatus.cancelled, ContractStatus.completed):
        raise StateConflict(f"Cannot transfer a {status} contract")

    original = {
        "client_name": contract.get("client_name"),
        "client_email": contract.get("client_email"),
        "client_phone": contract.get("client_phone"),
        "client_address": contract.get("client_address"),
    }

    try:
        updated = (
            client.table(CONTRACTS)
            .update({
                "client_name": body["new_client_name"],
                "client_email": body["new_client_email"],
                "client_phone": body.get("new_client_phone"),
                "client_address": body.get("new_client_address"),
                "updated_at": stamp,
            })
            .eq("contract_id", contract_id)
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update contract", status_code=400)

    side_effects = []

    if contract.get("reservation_id") and new_user_id:
        side_effects.append(non_critical(
            "reservation_owner_update",
            lambda: client.table(RESERVATIONS).update({
                "user_id": new_user_id,
                "client_name": body["new_client_name"],
                "client_email": body["new_client_email"],
                "client_phone": body.get("new_client_phone") or original["client_phone"],
                "client_address": body.get("new_client_address") or original["client_address"],
                "updated_at": stamp,
            }).eq("reservation_id", contract["reservation_id"]).execute().data,
        ))
    elif not new_user_id:
        logger.warning("new_user_id missing; reservation owner left unchanged")

    history = non_critical(
        "transfer_history",
        lambda: client.table(TRANSFERS).insert({
            "contract_id": contract_id,
            "original_client_name": original["client_name"],
            "original_client_email": original["client_email"],
            "original_client_phone": original["client_phone"],
            "original_client_address": original["client_address"],
            "new_client_name": body["new_client_name"],
            "new_client_email": body["new_client_email"],
            "new_client_phone": body.get("new_client_phone"),
            "new_client_address": body.get("new_client_address"),
            "relationship": body["relationship"],
            "transfer_reason": body["transfer_reason"],
            "transfer_notes": body.get("transfer_notes"),
            "transferred_at": stamp,
        }).execute().data,
    )
    side_effects.append(history)

    title = contract.get("property_title") or "property"
    number = contract.get("contract_number")
    relationship = body["relationship"]
    reason = body["transfer_reason"]

    old_owner = non_critical("old_owner_lookup", _auth_user_id_by_email, client, original["client_email"])
    side_effects.append(non_critical(
        "old_owner_notification",
        _notify_owner,
        client,
        old_owner.data,
        _owner_notice(
            "Contract Transferred",
            f"Your contract for {title} (Contract #{number}) has been transferred to {body['new_client_name']}. "
            f"Relationship: {relationship}. Reason: {reason}",
            "🔄", contract, "contract_transfer",
            {"new_owner_name": body["new_client_name"], "relationship": relationship, "transfer_reason": reason},
        ),
    ))

    new_owner_id = new_user_id
    if not new_owner_id:
        new_owner_id = non_critical("new_owner_lookup", _auth_user_id_by_email, client, body["new_client_email"]).data
    side_effects.append(non_critical(
        "new_owner_notification",
        _notify_owner,
        client,
        new_owner_id,
        _owner_notice(
            "Contract Transferred to You",
            f"A contract for {title} (Contract #{number}) has been transferred to you from "
            f"{original['client_name']}. Relationship: {relationship}. Reason: {reason}. "
            "Please review the contract details.",
            "📄", contract, "contract_transfer",
            {"previous_owner_name": original["client_name"], "relationship": relationship, "transfer_reason": reason},
        ),
    ))

    side_effects.append(non_critical(
        "contract_transferred_notification",
        create_notification,
        client,
        build_notification("CONTRACT_TRANSFERRED", {
            "contractId": contract_id,
            "contractNumber": number,
            "fromName": original["client_name"],
            "toName": body["new_client_name"],
        }),
    ))

    logger.info(f"Contract {number} transferred to {body['new_client_email']}")

    return {
        "contract": updated[0] if updated else None,
        "transfer_history": (history.data or [None])[0] if history.ok else None,
        "side_effects": side_effects,
    }


def revert_transfer(client: Client, contract_id: Optional[str], transfer_id: Optional[str], now: Optional[datetime] = None) -> dict:
    if not contract_id or not transfer_id:
        raise ValidationFailed("Missing required fields: contract_id and transfer_id")

    stamp = (now or datetime.now(timezone.utc)).isoformat()

    records = (
        client.table(TRANSFERS)
        .select("*")
        .eq("transfer_id", transfer_id)
        .eq("contract_id", contract_id)
        .limit(1)
        .execute()
    ).data
    if not records:
        raise NotFound("Transfer record not found")
    record = records[0]

    contract = fetch_contract(client, contract_id)

    restored = {
        "client_name": record.get("original_client_name"),
        "client_email": record.get("original_client_email"),
        "client_phone": record.get("original_client_phone"),
        "client_address": record.get("original_client_address"),
    }

    try:
        reverted = (
            client.table(CONTRACTS)
            .update({**restored, "updated_at": stamp})
            .eq("contract_id", contract_id)
            .execute()
        ).data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to revert contract", status_code=400)

    side_effects = []
    original_owner_id = non_critical(
        "original_owner_lookup", _auth_user_id_by_email, client, record.get("original_client_email")
    ).data

    if contract.get("reservation_id"):
        if original_owner_id:
            side_effects.append(non_critical(
                "reservation_owner_revert",
                lambda: client.table(RESERVATIONS).update({
                    "user_id": original_owner_id,
                    **restored,
                    "updated_at": stamp,
                }).eq("reservation_id", contract["reservation_id"]).execute().data,
            ))
        else:
            logger.warning("Original owner has no account; reservation owner left unchanged")

    side_effects.append(non_critical(
        "transfer_history_delete",
        lambda: client.table(TRANSFERS).delete().eq("transfer_id", transfer_id).execute().data,
    ))

    title = contract.get("property_title") or "property"
    number = contract.get("contract_number")
    revert_reason = "Transfer reverted by administrator"

    current_owner_id = non_critical(
        "current_owner_lookup", _auth_user_id_by_email, client, record.get("new_client_email")
    ).data
    side_effects.append(non_critical(
        "current_owner_notification",
        _notify_owner,
        client,
        current_owner_id,
        _owner_notice(
            "Contract Transfer Reverted",
            f"The contract for {title} (Contract #{number}) that was transferred to you has been reverted "
            f"back to the original owner {record.get('original_client_name')}.",
            "↩️", contract, "contract_transfer_revert",
            {"original_owner_name": record.get("original_client_name"), "revert_reason": revert_reason},
        ),
    ))
    side_effects.append(non_critical(
        "original_owner_notification",
        _notify_owner,
        client,
        original_owner_id,
        _owner_notice(
            "Contract Restored to You",
            f"Your contract for {title} (Contract #{number}) has been restored back to you. "
            f"The previous transfer to {record.get('new_client_name')} has been reverted.",
            "✅", contract, "contract_transfer_revert",
            {"previous_transfer_recipient": record.get("new_client_name"), "revert_reason": revert_reason},
        ),
    ))

    logger.info(f"Contract {number} transfer {transfer_id} reverted")

    return {
        "contract": reverted[0] if reverted else None,
        "original_owner": {"name": restored["client_name"], "email": restored["client_email"]},
        "side_effects": side_effects,
    }
