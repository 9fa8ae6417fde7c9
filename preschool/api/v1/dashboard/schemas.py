from decimal import Decimal
from typing import List

from pydantic import BaseModel

from preschool.api.v1.admissions.schemas import AdmissionWithStudent, StudentWithAdmission
from preschool.api.v1.announcements.schemas import AnnouncementResponse
from preschool.api.v1.events.schemas import EventResponse
from preschool.api.v1.payments.schemas import PaymentWithAdmission
from preschool.core.schemas import FeeLedgerResponse


class ParentDashboard(BaseModel):
    students: List[StudentWithAdmission]
    payments: List[PaymentWithAdmission]
    upcoming_events: List[EventResponse]
    announcements: List[AnnouncementResponse]
    totals: FeeLedgerResponse


class AdminStats(BaseModel):
    total_students: int
    pending_admissions: int
    pending_payments: int
    open_queries: int
    total_revenue: Decimal


class AdminDashboard(BaseModel):
    stats: AdminStats
    recent_admissions: List[AdmissionWithStudent]
    recent_payments: List[PaymentWithAdmission]
