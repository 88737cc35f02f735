"""
Domain value objects package.
"""

from .money import CENT, ZERO, format_money, money_sum, to_money
from .treatment_id import TreatmentId
from .visit_id import VisitId

__all__ = [
    "CENT",
    "ZERO",
    "TreatmentId",
    "VisitId",
    "format_money",
    "money_sum",
    "to_money",
]
