# services/payments.py

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from supabase import Client

from core.errors import NotFound, StateConflict, UpstreamError, ValidationFailed, handle_supabase_error
from core.logging_config import logger
from core.notifications import build_notification, create_notification
from core.side_effects import non_critical
from core.utils import iso_now, money, parse_datetime
from models.enums import PaymentStatus
from services.contracts import CONTRACTS, SCHEDULES, fetch_contract

TRANSACTIONS = "contract_payment_transactions"

PENALTY_GRACE_DAYS = 3
DEFAULT_PENALTY_RATE = 0.03  # per month
MIN_PARTIAL_FRACTION = 0.10


# -----------------------------------------------------
# Penalty
# -----------------------------------------------------
def _due_date(schedule: dict) -> Optional[date]:
    value = schedule.get("due_date")
    if not value:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_datetime(value).date()


def days_overdue_after_grace(schedule: dict, today: Optional[date] = None) -> int:
    due = _due_date(schedule)
    if due is None:
        return 0
    today = today or datetime.now(timezone.utc).date()
    return max(0, (today - (due + timedelta(days=PENALTY_GRACE_DAYS))).days)


def calculate_penalty(schedule: dict, today: Optional[date] = None) -> float:
    """
    No penalty through due date + 3 days. After that, the monthly rate
    is applied per day on what is still owed:
        remaining * rate / 30 * days_overdue
    """
    days = days_overdue_after_grace(schedule, today)
    if days <= 0:
        return 0.0

    rate = float(schedule.get("penalty_rate") or DEFAULT_PENALTY_RATE)
    base = float(schedule.get("remaining_amount") or schedule.get("scheduled_amount") or 0)
    return money(base * rate / 30 * days)


# -----------------------------------------------------
# Lookups
# -----------------------------------------------------
def fetch_schedule(client: Client, schedule_id: str) -> dict:
    rows = client.table(SCHEDULES).select("*").eq("schedule_id", schedule_id).limit(1).execute().data
    if not rows:
        raise NotFound("Payment schedule not found")
    return rows[0]


def schedule_transactions(client: Client, schedule_id: str) -> List[dict]:
    return (
        client.table(TRANSACTIONS)
        .select("*")
        .eq("schedule_id", schedule_id)
        .order("transaction_date", desc=True)
        .execute()
    ).data or []


def _store_penalty(client: Client, schedule: dict, penalty: float):
    if penalty > 0 and penalty != float(schedule.get("penalty_amount") or 0):
        client.table(SCHEDULES).update({"penalty_amount": penalty}).eq("schedule_id", schedule["schedule_id"]).execute()
        logger.info(f"Schedule {schedule['schedule_id']} penalty set to {penalty}")


def payment_details(client: Client, schedule_id: Optional[str], today: Optional[date] = None) -> dict:
    if not schedule_id:
        raise ValidationFailed("Schedule ID is required", "Schedule ID is required")

    schedule = fetch_schedule(client, schedule_id)
    transactions = schedule_transactions(client, schedule_id)

    penalty = calculate_penalty(schedule, today)
    non_critical("penalty_refresh", _store_penalty, client, schedule, penalty)

    due = _due_date(schedule)
    grace_end = (due + timedelta(days=PENALTY_GRACE_DAYS)).isoformat() if due else None

    return {
        "schedule": {
            **schedule,
            "penalty_amount": penalty,
            "calculated_penalty": penalty,
            "days_overdue_after_grace": days_overdue_after_grace(schedule, today),
            "grace_period_end": grace_end,
        },
        "transactions": transactions,
    }


# -----------------------------------------------------
# Walk-in payment
# -----------------------------------------------------
def record_walk_in_payment(client: Client, body: dict, today: Optional[date] = None) -> dict:
    schedule_id = body.get("schedule_id")
    if not schedule_id:
        raise ValidationFailed("Schedule ID is required", "Schedule ID is required")

    schedule = fetch_schedule(client, schedule_id)
    contract = fetch_contract(client, schedule["contract_id"])

    payment_type = body.get("payment_type") or "full"
    remaining = float(schedule.get("remaining_amount") or schedule.get("scheduled_amount") or 0)
    monthly_installment = float(contract.get("monthly_installment") or 0)

    if remaining <= 0:
        raise ValidationFailed(
            "No remaining amount to pay for this installment",
            "No remaining amount to pay for this installment",
        )

    if payment_type == "full":
        amount_paid = remaining
    else:
        try:
            amount_paid = float(body.get("amount_paid"))
        except (TypeError, ValueError):
            raise ValidationFailed("Payment amount must be greater than zero", "Invalid amount")

        minimum = monthly_installment * MIN_PARTIAL_FRACTION
        if amount_paid < minimum:
            raise ValidationFailed(f"Minimum payment is ₱{minimum:.2f}", f"Minimum payment is ₱{minimum:.2f}")

        if amount_paid > remaining:
            raise ValidationFailed("Payment exceeds remaining balance", "Payment exceeds remaining balance")

    if amount_paid <= 0:
        raise ValidationFailed("Payment amount must be greater than zero", "Payment amount must be greater than zero")

    # Server-side penalty; any client-supplied value is ignored
    penalty = calculate_penalty(schedule, today)
    non_critical("penalty_refresh", _store_penalty, client, schedule, penalty)

    try:
        result = client.rpc("record_walk_in_payment", {
            "p_schedule_id": schedule_id,
            "p_amount_paid": amount_paid,
            "p_penalty_paid": penalty,
            "p_payment_type": payment_type,
            "p_payment_method": body.get("payment_method") or "cash",
            "p_reference_number": body.get("reference_number"),
            "p_processed_by": body.get("processed_by"),
            "p_processed_by_name": body.get("processed_by_name") or "System",
            "p_notes": body.get("notes"),
        }).execute().data
    except Exception as e:
        raise handle_supabase_error(e, "Failed to record payment", status_code=400)

    rows = result if isinstance(result, list) else ([result] if result else [])
    if not rows:
        raise UpstreamError("Failed to record payment", "Database function returned no transaction")

    transaction = rows[0]
    transaction_id = transaction.get("transaction_id")

    if transaction_id and (body.get("check_number") or body.get("bank_name")):
        non_critical(
            "check_details",
            lambda: client.table(TRANSACTIONS).update({
                "check_number": body.get("check_number"),
                "bank_name": body.get("bank_name"),
            }).eq("transaction_id", transaction_id).execute().data,
        )

    notification = non_critical(
        "payment_received_notification",
        create_notification,
        client,
        build_notification("PAYMENT_RECEIVED", {
            "amount": amount_paid + penalty,
            "contractNumber": contract.get("contract_number"),
            "orNumber": transaction.get("or_number") or transaction.get("receipt_number"),
            "scheduleId": schedule_id,
        }),
    )

    logger.info(f"Walk-in payment {amount_paid} (+{penalty} penalty) on schedule {schedule_id}")

    return {
        "transaction": transaction,
        "updated_schedule": fetch_schedule(client, schedule_id),
        "updated_contract": fetch_contract(client, schedule["contract_id"]),
        "side_effects": [notification],
    }


# -----------------------------------------------------
# Revert a paid installment
# -----------------------------------------------------
def revert_payment(client: Client, schedule_id: Optional[str]) -> dict:
    """
    paid → pending. The schedule reset and the contract balance
    recomputation are separate calls; a failure in between leaves the
    contract balance stale until the next revert or payment.
    """
    if not schedule_id:
        raise ValidationFailed("Schedule ID is required", "Schedule ID is required")

    schedule = fetch_schedule(client, schedule_id)
    if schedule.get("payment_status") != PaymentStatus.paid:
        raise StateConflict("Payment schedule is not in paid status")

    transactions = schedule_transactions(client, schedule_id)
    stamp = iso_now()

    try:
        client.table(SCHEDULES).update({
            "payment_status": PaymentStatus.pending.value,
            "paid_amount": 0,
            "remaining_amount": schedule.get("scheduled_amount"),
            "updated_at": stamp,
        }).eq("schedule_id", schedule_id).execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update payment schedule")

    side_effects = []
    if transactions:
        ids = [t["transaction_id"] for t in transactions]
        side_effects.append(non_critical(
            "transactions_reverted",
            lambda: client.table(TRANSACTIONS).update({
                "transaction_status": "reverted",
                "notes": f"Payment reverted on {datetime.now(timezone.utc).date().isoformat()}",
                "updated_at": stamp,
            }).in_("transaction_id", ids).execute().data,
        ))

    side_effects.append(non_critical("contract_balance", recompute_contract_balance, client, schedule["contract_id"]))

    logger.info(f"Schedule {schedule_id} reverted to pending ({len(transactions)} transactions)")
    return {
        "schedule_id": schedule_id,
        "transactions_reverted": len(transactions),
        "side_effects": side_effects,
    }


def recompute_contract_balance(client: Client, contract_id: str) -> float:
    contract = fetch_contract(client, contract_id)
    schedules = client.table(SCHEDULES).select("paid_amount").eq("contract_id", contract_id).execute().data or []

    total_paid = sum(float(s.get("paid_amount") or 0) for s in schedules)
    balance = money(float(contract.get("downpayment_total") or 0) - total_paid)

    client.table(CONTRACTS).update({
        "remaining_balance": balance,
        "remaining_downpayment": balance,
        "updated_at": iso_now(),
    }).eq("contract_id", contract_id).execute()

    return balance


# -----------------------------------------------------
# History / reporting
# -----------------------------------------------------
def transactions_summary(transactions: List[dict]) -> dict:
    return {
        "total_transactions": len(transactions),
        "total_amount_paid": money(sum(float(t.get("total_amount") or 0) for t in transactions)),
        "total_penalties_paid": money(sum(float(t.get("penalty_paid") or 0) for t in transactions)),
        "payment_methods": sorted({t["payment_method"] for t in transactions if t.get("payment_method")}),
        "completed_count": sum(1 for t in transactions if t.get("payment_status") == PaymentStatus.completed),
        "pending_count": sum(1 for t in transactions if t.get("payment_status") == PaymentStatus.pending),
        "failed_count": sum(1 for t in transactions if t.get("payment_status") == PaymentStatus.failed),
    }


def list_transactions(
    client: Client,
    contract_id: Optional[str] = None,
    schedule_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    payment_status: Optional[str] = None,
    payment_method: Optional[str] = None,
) -> List[dict]:
    query = client.table(TRANSACTIONS).select("*").order("transaction_date", desc=True)

    if start_date:
        query = query.gte("transaction_date", start_date)
    if end_date:
        query = query.lte("transaction_date", end_date)
    if payment_status and payment_status != "all":
        query = query.eq("payment_status", payment_status)
    if payment_method and payment_method != "all":
        query = query.eq("payment_method", payment_method)
    if contract_id:
        query = query.eq("contract_id", contract_id)
    if schedule_id:
        query = query.eq("schedule_id", schedule_id)

    try:
        return query.execute().data or []
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch transactions", status_code=400)
