# routers/service_requests.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client

from dependencies.clients import get_supabase
from models.complaint import ServiceRequestCreate, TicketStatusUpdate
from services.tickets import SERVICE_REQUESTS, create_ticket, list_tickets, update_ticket_status

router = APIRouter(
    prefix="/api/service-requests",
    tags=["Service Requests"],
)


@router.get("", summary="List service requests (optionally for one homeowner)")
def list_requests(user_id: Optional[str] = Query(None), client: Client = Depends(get_supabase)):
    rows, message = list_tickets(client, SERVICE_REQUESTS, user_id)
    return {"success": True, "data": rows, "message": message}


@router.post("", summary="Submit a service request")
def create_request(payload: ServiceRequestCreate, client: Client = Depends(get_supabase)):
    result = create_ticket(client, SERVICE_REQUESTS, payload.model_dump())
    return {
        "success": True,
        "data": result["ticket"],
        "message": SERVICE_REQUESTS.created_message,
        "side_effects": result["side_effects"],
    }


@router.patch("", summary="Change service request status")
def update_request(payload: TicketStatusUpdate, client: Client = Depends(get_supabase)):
    result = update_ticket_status(client, SERVICE_REQUESTS, payload.id, payload.status, payload.user_id)
    return {
        "success": True,
        "data": result["ticket"],
        "message": "Service request updated successfully",
        "side_effects": result["side_effects"],
    }
