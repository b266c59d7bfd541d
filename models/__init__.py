# -------------------------
# Enums
# -------------------------
from .enums import (
    AppointmentStatus,
    ReservationStatus,
    InquiryStatus,
    PaymentStatus,
    ContractStatus,
    NotificationPriority,
    NotificationStatus,
    ComplaintStatus,
)

# -------------------------
# Tour bookings
# -------------------------
from .appointment import (
    TourBookingCreate,
    TourApproval,
    TourRejection,
)

# -------------------------
# Reservations
# -------------------------
from .reservation import (
    ReservationCreate,
    ReservationStatusUpdate,
    ReservationApproval,
    ReservationRejection,
    ReservationRevert,
)

# -------------------------
# Inquiries + OTP
# -------------------------
from .inquiry import InquiryCreate, InquiryStatusUpdate, FollowUpEmail
from .otp import OTPRequest, OTPVerify

# -------------------------
# Accounts
# -------------------------
from .role import RoleCreate, RoleUpdate
from .user import UserCreate, UserUpdate, SignupRequest

# -------------------------
# Contracts & payments
# -------------------------
from .contract import (
    ContractCreate,
    ContractTransfer,
    TransferRevert,
    WalkInPayment,
    PaymentRevert,
)

# -------------------------
# Homeowner portal
# -------------------------
from .notification import NotificationCreate, NotificationUpdate
from .announcement import AnnouncementCreate, AnnouncementUpdate
from .complaint import ComplaintCreate, ServiceRequestCreate, TicketStatusUpdate

__all__ = [
    # enums
    "AppointmentStatus",
    "ReservationStatus",
    "InquiryStatus",
    "PaymentStatus",
    "ContractStatus",
    "NotificationPriority",
    "NotificationStatus",
    "ComplaintStatus",

    # tours
    "TourBookingCreate",
    "TourApproval",
    "TourRejection",

    # reservations
    "ReservationCreate",
    "ReservationStatusUpdate",
    "ReservationApproval",
    "ReservationRejection",
    "ReservationRevert",

    # inquiries
    "InquiryCreate",
    "InquiryStatusUpdate",
    "FollowUpEmail",
    "OTPRequest",
    "OTPVerify",

    # accounts
    "RoleCreate",
    "RoleUpdate",
    "UserCreate",
    "UserUpdate",
    "SignupRequest",

    # contracts
    "ContractCreate",
    "ContractTransfer",
    "TransferRevert",
    "WalkInPayment",
    "PaymentRevert",

    # portal
    "NotificationCreate",
    "NotificationUpdate",
    "AnnouncementCreate",
    "AnnouncementUpdate",
    "ComplaintCreate",
    "ServiceRequestCreate",
    "TicketStatusUpdate",
]
