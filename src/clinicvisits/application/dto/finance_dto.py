"""DTOs for finance search, dashboard and export."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ...domain.value_objects.money import ZERO, format_money
from .visit_dto import VisitView


@dataclass
class VisitSearchQuery:
    """Request DTO for the finance visit search."""

    visit_id: Optional[str] = None
    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = 1
    limit: int = 20
    sort_by: str = "scheduledDate"
    sort_order: str = "desc"


@dataclass
class SearchStatistics:
    """Aggregates over the filtered result set, before pagination."""

    total_revenue: Decimal = ZERO
    completed_visits: int = 0
    pending_payments: int = 0
    partial_payments: int = 0
    paid_visits: int = 0

    def to_record(self) -> Dict[str, Any]:
        return {
            "totalRevenue": format_money(self.total_revenue),
            "completedVisits": self.completed_visits,
            "pendingPayments": self.pending_payments,
            "partialPayments": self.partial_payments,
            "paidVisits": self.paid_visits,
        }


@dataclass
class VisitSearchResult:
    """Response DTO for the finance visit search."""

    items: List[VisitView]
    total: int
    page: int
    pages: int
    statistics: SearchStatistics

    def to_record(self) -> Dict[str, Any]:
        return {
            "items": [item.to_record() for item in self.items],
            "count": len(self.items),
            "total": self.total,
            "page": self.page,
            "pages": self.pages,
            "statistics": self.statistics.to_record(),
        }


@dataclass
class OverallStats:
    total_visits: int = 0
    scheduled_visits: int = 0
    in_progress_visits: int = 0
    completed_visits: int = 0
    cancelled_visits: int = 0
    total_revenue: Decimal = ZERO
    pending_payments: Decimal = ZERO
    paid_amount: Decimal = ZERO

    @property
    def collection_rate(self) -> str:
        if self.total_revenue <= 0:
            return "0%"
        rate = self.paid_amount / self.total_revenue * 100
        return f"{format_money(rate)}%"

    def to_record(self) -> Dict[str, Any]:
        return {
            "totalVisits": self.total_visits,
            "completedVisits": self.completed_visits,
            "scheduledVisits": self.scheduled_visits,
            "inProgressVisits": self.in_progress_visits,
            "cancelledVisits": self.cancelled_visits,
            "totalRevenue": format_money(self.total_revenue),
            "pendingPayments": format_money(self.pending_payments),
            "paidAmount": format_money(self.paid_amount),
            "collectionRate": self.collection_rate,
        }


@dataclass
class PeriodStats:
    visits: int = 0
    revenue: Decimal = ZERO

    def to_record(self) -> Dict[str, Any]:
        return {"visits": self.visits, "revenue": format_money(self.revenue)}


@dataclass
class PractitionerRevenue:
    practitioner_id: str
    practitioner_name: Optional[str]
    specialization: Optional[str]
    total_visits: int = 0
    total_revenue: Decimal = ZERO

    def to_record(self) -> Dict[str, Any]:
        return {
            "doctorId": self.practitioner_id,
            "doctorName": self.practitioner_name,
            "specialization": self.specialization,
            "totalVisits": self.total_visits,
            "totalRevenue": format_money(self.total_revenue),
        }


@dataclass
class PaymentBreakdown:
    status: str
    count: int = 0
    amount: Decimal = ZERO

    def to_record(self) -> Dict[str, Any]:
        return {"status": self.status, "count": self.count, "amount": format_money(self.amount)}


@dataclass
class CategoryRevenue:
    category: str
    count: int = 0
    revenue: Decimal = ZERO

    def to_record(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "count": self.count,
            "revenue": format_money(self.revenue),
        }


@dataclass
class Dashboard:
    """Response DTO for the finance dashboard."""

    overall: OverallStats
    today: PeriodStats
    this_month: PeriodStats
    revenue_by_doctor: List[PractitionerRevenue] = field(default_factory=list)
    payment_breakdown: List[PaymentBreakdown] = field(default_factory=list)
    treatment_categories: List[CategoryRevenue] = field(default_factory=list)
    recent_visits: List[VisitView] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.to_record(),
            "today": self.today.to_record(),
            "thisMonth": self.this_month.to_record(),
            "revenueByDoctor": [r.to_record() for r in self.revenue_by_doctor],
            "paymentBreakdown": [p.to_record() for p in self.payment_breakdown],
            "treatmentCategories": [c.to_record() for c in self.treatment_categories],
            "recentVisits": [v.to_record() for v in self.recent_visits],
        }


@dataclass
class ExportQuery:
    """Request DTO for the finance export."""

    status: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass
class ExportRow:
    visit_id: str
    patient_name: Optional[str]
    patient_email: Optional[str]
    doctor_name: Optional[str]
    doctor_specialization: Optional[str]
    scheduled_date: datetime
    status: str
    diagnosis: Optional[str]
    total_amount: Decimal
    payment_status: str
    treatments_count: int

    def to_record(self) -> Dict[str, Any]:
        return {
            "visitId": self.visit_id,
            "patientName": self.patient_name,
            "patientEmail": self.patient_email,
            "doctorName": self.doctor_name,
            "doctorSpecialization": self.doctor_specialization,
            "scheduledDate": self.scheduled_date.isoformat(),
            "status": self.status,
            "diagnosis": self.diagnosis,
            "totalAmount": format_money(self.total_amount),
            "paymentStatus": self.payment_status,
            "treatmentsCount": self.treatments_count,
        }
