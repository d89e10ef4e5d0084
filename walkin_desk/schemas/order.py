"""
Pydantic schemas for walk-in order submission and the bill it returns.
"""
import enum
from typing import Optional

from pydantic import Field

from walkin_desk.schemas.base import WireModel


class WalkInOrderRequest(WireModel):
    """Payload for POST /api/Orders/walkin."""
    user_id: int
    vehicle_id: int
    service_id: Optional[int] = None
    includes_inspection: bool = False
    inspection_type_id: Optional[int] = None
    inspection_sub_category: str = ""
    total_amount: float
    notes: str = ""
    mechanic_id: int


class OrderRoute(str, enum.Enum):
    """Where the desk goes once the bill is closed."""
    SERVICE_ONLY = "service_only"
    INSPECTION_INVOLVED = "inspection_involved"


class BillOrder(WireModel):
    order_id: Optional[int] = None
    total_amount: float = 0.0
    payment_method: Optional[str] = None
    status: Optional[str] = None


class BillUserInfo(WireModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_new_user: bool = False
    username: Optional[str] = None
    temporary_password: Optional[str] = None


class BillVehicle(WireModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None


class BillLine(WireModel):
    name: Optional[str] = None
    sub_category: Optional[str] = None
    price: float = 0.0


class BillServices(WireModel):
    inspection: Optional[BillLine] = None
    main_service: Optional[BillLine] = None


class BillMechanic(WireModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class BillDetails(WireModel):
    vehicle: BillVehicle = Field(default_factory=BillVehicle)
    services: BillServices = Field(default_factory=BillServices)
    mechanic: Optional[BillMechanic] = None
    order_date: Optional[str] = None


class Bill(WireModel):
    """
    Read-only receipt for a committed walk-in order.

    Only used for display and printing. The stored total is tax-inclusive;
    ``subtotal`` and ``sales_tax`` split it back out for the receipt.
    """
    order: BillOrder = Field(default_factory=BillOrder)
    user_info: BillUserInfo = Field(default_factory=BillUserInfo)
    bill_details: BillDetails = Field(default_factory=BillDetails)

    def subtotal(self, tax_rate: float) -> float:
        return round(self.order.total_amount / (1 + tax_rate), 2)

    def sales_tax(self, tax_rate: float) -> float:
        return round(self.order.total_amount - self.order.total_amount / (1 + tax_rate), 2)
