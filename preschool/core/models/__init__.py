from preschool.auth.models import PasswordResetToken, Profile, RefreshToken
from preschool.core.models.student import Student
from preschool.core.models.admission import Admission
from preschool.core.models.payment import Payment
from preschool.core.models.event import Event
from preschool.core.models.announcement import Announcement
from preschool.core.models.help_query import HelpQuery
from preschool.core.models.audit_log import AuditLog

__all__ = [
    "Profile",
    "RefreshToken",
    "PasswordResetToken",
    "Student",
    "Admission",
    "Payment",
    "Event",
    "Announcement",
    "HelpQuery",
    "AuditLog",
]
