# routers/__init__.py

from .book_tour import router as book_tour_router
from .property_reservation import router as property_reservation_router
from .inquiries import router as inquiries_router
from .otp import router as otp_router
from .roles import router as roles_router
from .users import router as users_router
from .contracts import router as contracts_router
from .payments import router as payments_router
from .receipts import router as receipts_router
from .notifications import router as notifications_router
from .announcements import router as announcements_router
from .complaints import router as complaints_router
from .service_requests import router as service_requests_router
from .route_access import router as route_access_router
from .health import router as health_router


# Registration order matters only where prefixes overlap:
# /api/contracts/payment/* is two segments deep, so /api/contracts/{id}
# never shadows it.
ALL_ROUTERS = [
    # Public funnel
    book_tour_router,
    property_reservation_router,
    inquiries_router,
    otp_router,

    # Accounts
    users_router,
    roles_router,
    route_access_router,

    # Contracts & money
    payments_router,
    contracts_router,
    receipts_router,

    # Homeowner portal
    notifications_router,
    announcements_router,
    complaints_router,
    service_requests_router,

    # Health
    health_router,
]

__all__ = ["ALL_ROUTERS"]
