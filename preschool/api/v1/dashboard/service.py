"""
Dashboard aggregates. Parent totals sum total_fee over all the parent's admissions
and approved payments over the same admissions; admin revenue sums every approved
payment in the school.
"""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from preschool.auth.schemas import CurrentUser
from preschool.core.enums import AdmissionStatus, PaymentStatus, QueryStatus
from preschool.core.ledger import ledger_from_totals
from preschool.core.models import Admission, HelpQuery, Payment, Student
from preschool.core.schemas import FeeLedgerResponse

from preschool.api.v1.admissions.service import list_admissions
from preschool.api.v1.announcements.service import list_recent_announcements
from preschool.api.v1.events.service import list_upcoming_events
from preschool.api.v1.payments.service import list_my_payments, list_payments
from preschool.api.v1.students.service import list_my_students
from .schemas import AdminDashboard, AdminStats, ParentDashboard

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
DASHBOARD_EVENTS = 5
DASHBOARD_ANNOUNCEMENTS = 3


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one()


async def get_parent_dashboard(db: AsyncSession, current_user: CurrentUser) -> ParentDashboard:
    students = await list_my_students(db, current_user)
    payments = await list_my_payments(db, current_user)
    upcoming = await list_upcoming_events(db, limit=DASHBOARD_EVENTS)
    announcements = await list_recent_announcements(db, limit=DASHBOARD_ANNOUNCEMENTS)

    total_fees = sum((s.admission.total_fee for s in students if s.admission is not None), Decimal("0"))
    admission_ids = {s.admission.id for s in students if s.admission is not None}
    paid = sum(
        (
            p.amount
            for p in payments
            if p.status == PaymentStatus.APPROVED and p.admission_id in admission_ids
        ),
        Decimal("0"),
    )

    return ParentDashboard(
        students=students,
        payments=payments,
        upcoming_events=upcoming,
        announcements=announcements,
        totals=FeeLedgerResponse.from_ledger(ledger_from_totals(total_fees, paid)),
    )


async def get_admin_dashboard(db: AsyncSession) -> AdminDashboard:
    total_students = await _count(db, select(func.count()).select_from(Student))
    pending_admissions = await _count(
        db,
        select(func.count()).select_from(Admission).where(Admission.status == AdmissionStatus.SUBMITTED.value),
    )
    pending_payments = await _count(
        db,
        select(func.count()).select_from(Payment).where(Payment.status == PaymentStatus.UNDER_VERIFICATION.value),
    )
    open_queries = await _count(
        db,
        select(func.count()).select_from(HelpQuery).where(HelpQuery.status == QueryStatus.OPEN.value),
    )
    revenue = (
        await db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.status == PaymentStatus.APPROVED.value
            )
        )
    ).scalar_one()

    stats = AdminStats(
        total_students=total_students,
        pending_admissions=pending_admissions,
        pending_payments=pending_payments,
        open_queries=open_queries,
        total_revenue=Decimal(str(revenue)),
    )
    logger.debug("Admin dashboard stats: %s", stats)
    return AdminDashboard(
        stats=stats,
        recent_admissions=await list_admissions(db, limit=RECENT_LIMIT),
        recent_payments=await list_payments(db, limit=RECENT_LIMIT),
    )
