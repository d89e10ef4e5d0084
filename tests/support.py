"""
Shared fixtures for the walk-in tests: a scripted backend client and sample data.
"""
import copy

from walkin_desk.schemas.customer import Customer
from walkin_desk.schemas.mechanic import Mechanic
from walkin_desk.schemas.service import ServiceOffering
from walkin_desk.schemas.vehicle import Vehicle
from walkin_desk.services.catalog import Catalog
from walkin_desk.services.mechanics import MechanicAvailabilityTracker
from walkin_desk.services.resolver import EntityResolver
from walkin_desk.services.submission import OrderSubmission
from walkin_desk.services.workflow import WalkInWorkflow


class FakeClient:
    """
    Stands in for ApiClient. Answers are keyed by (method, path); an
    exception is raised, a callable is called with the request, anything
    else is returned as a copy.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.closed = False

    def get(self, path, params=None, authenticated=True):
        return self._answer("GET", path, params=params, authenticated=authenticated)

    def post(self, path, payload, authenticated=True):
        return self._answer("POST", path, payload=payload, authenticated=authenticated)

    def close(self):
        self.closed = True

    def calls_to(self, method, path):
        return [call for call in self.calls if call[0] == method and call[1] == path]

    def _answer(self, method, path, **request):
        self.calls.append((method, path, request))
        answer = self.responses[(method, path)]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(**request)
        return copy.deepcopy(answer)


SERVICES = {
    "$values": [
        {"serviceId": 1, "serviceName": "Oil Change", "category": "Maintenance", "price": 1500.0},
        {"serviceId": 2, "serviceName": "Brake Repair", "category": "Repair", "price": 1000.0},
        {
            "serviceId": 7,
            "serviceName": "Full Inspection",
            "category": "Inspection",
            "subCategory": "Engine",
            "price": 800.0,
        },
        {
            "serviceId": 8,
            "serviceName": "Body Inspection",
            "category": "inspection",
            "subCategory": "Body",
            "price": 500.0,
        },
    ]
}

MECHANICS = [
    {"mechanicId": 11, "name": "Ali Raza", "email": "ali@example.com", "phone": "0300", "currentAppointments": 1},
    {"mechanicId": 12, "name": "Sara Khan", "email": "sara@example.com", "phone": "0301", "currentAppointments": 3},
]

CUSTOMERS = [
    {"userId": 5, "name": "Jane Doe", "email": "jane@example.com", "phone": "0312345"},
]

VEHICLES = [
    {"vehicleId": 21, "make": "Honda", "model": "Civic", "year": 2019, "licensePlate": "LEA-123", "userId": 5},
]

BILL = {
    "order": {"orderId": 301, "totalAmount": 2300.0, "paymentMethod": "Cash", "status": "pending"},
    "userInfo": {"name": "Jane Doe", "email": "jane@example.com", "phone": "0312345", "isNewUser": False},
    "billDetails": {
        "vehicle": {"make": "Honda", "model": "Civic", "year": 2019, "licensePlate": "LEA-123"},
        "services": {
            "inspection": {"name": "Full Inspection", "subCategory": "Engine", "price": 800.0},
            "mainService": {"name": "Oil Change", "price": 1500.0},
        },
        "mechanic": {"name": "Ali Raza", "phone": "0300"},
        "orderDate": "2026-10-19T10:00:00",
    },
}


def backend_responses(overrides=None):
    responses = {
        ("GET", "/api/Services"): SERVICES,
        ("GET", "/api/MechanicServices/available"): MECHANICS,
        ("GET", "/api/Users/search"): CUSTOMERS,
        ("GET", "/api/Vehicles/user/5"): VEHICLES,
        ("POST", "/api/Orders/walkin"): BILL,
    }
    responses.update(overrides or {})
    return responses


def make_workflow(client):
    return WalkInWorkflow(
        catalog=Catalog(client),
        resolver=EntityResolver(client),
        tracker=MechanicAvailabilityTracker(client),
        submission=OrderSubmission(client),
        client=client,
    )


def customer(user_id=5, name="Jane Doe"):
    return Customer(user_id=user_id, name=name, email="jane@example.com", phone="0312345")


def vehicle(vehicle_id=21, user_id=5):
    return Vehicle(vehicle_id=vehicle_id, user_id=user_id, make="Honda", model="Civic", year=2019,
                   license_plate="LEA-123")


def service(service_id=1, price=1500.0, category="Maintenance", sub_category=None):
    return ServiceOffering(service_id=service_id, service_name=f"Service {service_id}", category=category,
                           sub_category=sub_category, price=price)


def inspection(service_id=7, price=800.0, sub_category="Engine"):
    return service(service_id, price, category="Inspection", sub_category=sub_category)


def mechanic(mechanic_id=11, appointments=1, name="Ali Raza"):
    return Mechanic.model_validate(
        {"mechanicId": mechanic_id, "name": name, "currentAppointments": appointments}
    )
