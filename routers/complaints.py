# routers/complaints.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from dependencies.clients import get_supabase
from models.complaint import ComplaintCreate, TicketStatusUpdate
from services.tickets import COMPLAINTS, create_ticket, list_tickets, update_ticket_status

router = APIRouter(
    prefix="/api/complaints",
    tags=["Complaints"],
)


@router.get("", summary="List complaints (optionally for one homeowner)")
def list_complaints(user_id: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    rows, message = list_tickets(client, COMPLAINTS, user_id)
    return {"success": True, "data": rows, "message": message}


@router.post("", summary="File a complaint")
def file_complaint(payload: ComplaintCreate, client: Client = Depends(get_supabase)):
    result = create_ticket(client, COMPLAINTS, payload.model_dump())
    return {
        "success": True,
        "data": result["ticket"],
        "message": COMPLAINTS.created_message,
        "side_effects": result["side_effects"],
    }


@router.patch("", summary="Change complaint status")
def update_complaint(payload: TicketStatusUpdate, client: Client = Depends(get_supabase)):
    result = update_ticket_status(client, COMPLAINTS, payload.id, payload.status, payload.user_id)
    return {
        "success": True,
        "data": result["ticket"],
        "message": "Complaint updated successfully",
        "side_effects": result["side_effects"],
    }
