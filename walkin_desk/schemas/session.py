"""
Pydantic schemas for the walk-in session API.
"""
from typing import Optional

from walkin_desk.schemas.base import WireModel
from walkin_desk.schemas.customer import Customer
from walkin_desk.schemas.mechanic import Mechanic
from walkin_desk.schemas.order import Bill, OrderRoute
from walkin_desk.schemas.service import ServiceOffering
from walkin_desk.schemas.vehicle import Vehicle


class CustomerSelection(WireModel):
    user_id: int


class SelectionUpdate(WireModel):
    """
    Partial update of the order being composed.

    Only fields present in the request are applied; an explicit null clears
    that selection.
    """
    vehicle_id: Optional[int] = None
    service_id: Optional[int] = None
    includes_inspection: Optional[bool] = None
    inspection_id: Optional[int] = None
    mechanic_id: Optional[int] = None
    notes: Optional[str] = None


class CompositionView(WireModel):
    customer: Optional[Customer] = None
    vehicle: Optional[Vehicle] = None
    service: Optional[ServiceOffering] = None
    includes_inspection: bool = False
    inspection: Optional[ServiceOffering] = None
    mechanic: Optional[Mechanic] = None
    notes: str = ""
    total_amount: float = 0.0


class NoticeView(WireModel):
    level: str
    message: str


class SessionView(WireModel):
    """Everything the dashboard needs to render a walk-in intake."""
    session_id: str
    state: str
    composition: CompositionView
    errors: dict[str, str] = {}
    notices: list[NoticeView] = []
    regular_services: list[ServiceOffering] = []
    inspection_services: list[ServiceOffering] = []
    mechanics: list[Mechanic] = []
    created_customers: list[int] = []
    created_vehicles: list[int] = []


class SubmitResponse(WireModel):
    bill: Bill
    route: OrderRoute
    message: str
    subtotal: float
    sales_tax: float
