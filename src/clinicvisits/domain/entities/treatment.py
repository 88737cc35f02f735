"""Treatment domain entity: a billable line item embedded in a visit."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from ...core.utils.clock import utc_now
from ..enums import TreatmentCategory
from ..errors import ValidationError
from ..value_objects.money import (
    ZERO,
    MoneyInput,
    ensure_within_limit,
    format_money,
    to_money,
)
from ..value_objects.treatment_id import TreatmentId


def normalize_quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Quantity must be a whole number", field="quantity")
    if value < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity", value=value)
    return value


def normalize_name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Treatment name is required", field="name")
    return value.strip()


def normalize_category(value: Any) -> TreatmentCategory:
    try:
        return TreatmentCategory(value)
    except ValueError:
        raise ValidationError("Invalid category", field="category", value=str(value))


def normalize_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Description must be text", field="description")
    return value.strip()


@dataclass
class Treatment:
    """Treatment line item.

    ``total_price`` is derived from ``unit_price`` and ``quantity`` and cannot
    be passed in; call ``recompute_total_price`` after changing either.
    """

    treatment_id: TreatmentId
    name: str
    unit_price: Decimal
    quantity: int = 1
    category: TreatmentCategory = TreatmentCategory.OTHER
    description: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    total_price: Decimal = field(default=ZERO, init=False)

    def __post_init__(self) -> None:
        self.name = normalize_name(self.name)
        self.unit_price = to_money(self.unit_price, field="unit_price")
        self.quantity = normalize_quantity(self.quantity)
        self.category = normalize_category(self.category)
        self.description = normalize_description(self.description)
        self.recompute_total_price()

    @classmethod
    def create(
        cls,
        name: str,
        unit_price: MoneyInput,
        quantity: int = 1,
        category: Any = TreatmentCategory.OTHER,
        description: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> "Treatment":
        at = at or utc_now()
        return cls(
            treatment_id=TreatmentId.generate(),
            name=name,
            unit_price=unit_price,
            quantity=quantity,
            category=category,
            description=description,
            created_at=at,
            updated_at=at,
        )

    def recompute_total_price(self) -> Decimal:
        self.total_price = ensure_within_limit(
            self.unit_price * self.quantity, field="total_price"
        )
        return self.total_price

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.treatment_id.value,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "unitPrice": format_money(self.unit_price),
            "totalPrice": format_money(self.total_price),
            "category": self.category.value,
        }
