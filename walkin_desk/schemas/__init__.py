"""
Pydantic schemas for backend payloads.
"""
from walkin_desk.schemas.customer import (
    CustomerBase, CustomerCreate, Customer, GeneratedCredentials, RegisteredCustomer,
)
from walkin_desk.schemas.vehicle import VehicleBase, VehicleCreate, Vehicle
from walkin_desk.schemas.service import ServiceOffering
from walkin_desk.schemas.mechanic import Mechanic, MechanicStatus, MECHANIC_CAPACITY
from walkin_desk.schemas.order import WalkInOrderRequest, OrderRoute, Bill

__all__ = [
    "CustomerBase", "CustomerCreate", "Customer", "GeneratedCredentials", "RegisteredCustomer",
    "VehicleBase", "VehicleCreate", "Vehicle",
    "ServiceOffering",
    "Mechanic", "MechanicStatus", "MECHANIC_CAPACITY",
    "WalkInOrderRequest", "OrderRoute", "Bill",
]
