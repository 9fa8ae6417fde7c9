from enum import Enum


class UserRole(str, Enum):
    PARENT = "parent"
    ADMIN = "admin"


class AdmissionStatus(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING_UPLOAD = "pending_upload"
    UNDER_VERIFICATION = "under_verification"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentType(str, Enum):
    INITIAL = "initial"
    INSTALLMENT = "installment"


class EventType(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"


class AnnouncementPriority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class QueryStatus(str, Enum):
    OPEN = "open"
    REPLIED = "replied"
    CLOSED = "closed"


# Sort rank for announcements: high first
PRIORITY_RANK = {
    AnnouncementPriority.HIGH.value: 0,
    AnnouncementPriority.NORMAL.value: 1,
    AnnouncementPriority.LOW.value: 2,
}
