from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# TOUR / APPOINTMENT STATUS
# -----------------------------------------------------
class AppointmentStatus(BaseStrEnum):
    """Two-step staff approval of a property tour."""

    pending = "pending"
    cs_approved = "cs_approved"
    sales_approved = "sales_approved"
    rejected = "rejected"


# -----------------------------------------------------
# RESERVATION STATUS
# -----------------------------------------------------
class ReservationStatus(BaseStrEnum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# -----------------------------------------------------
# INQUIRY STATUS
# -----------------------------------------------------
class InquiryStatus(BaseStrEnum):
    pending = "pending"
    approved = "approved"
    declined = "declined"
    in_progress = "in_progress"
    responded = "responded"
    closed = "closed"


# -----------------------------------------------------
# PAYMENTS
# -----------------------------------------------------
class PaymentStatus(BaseStrEnum):
    """Used by reservation fee transactions and payment schedules."""

    pending = "pending"
    paid = "paid"
    completed = "completed"
    failed = "failed"


class ContractStatus(BaseStrEnum):
    active = "active"
    pending = "pending"
    completed = "completed"
    cancelled = "cancelled"


# -----------------------------------------------------
# NOTIFICATIONS
# -----------------------------------------------------
class NotificationPriority(BaseStrEnum):
    low = "low"
    normal = "normal"
    high = "high"
    urgent = "urgent"


class NotificationStatus(BaseStrEnum):
    unread = "unread"
    read = "read"
    archived = "archived"


# -----------------------------------------------------
# COMPLAINTS
# -----------------------------------------------------
class ComplaintStatus(BaseStrEnum):
    pending = "pending"
    investigating = "investigating"
    escalated = "escalated"
    resolved = "resolved"
    closed = "closed"
