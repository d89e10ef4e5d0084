"""
Customer and vehicle lookup/creation for walk-in intake.
"""
import secrets
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from walkin_desk.client import ApiClient
from walkin_desk.errors import (
    ApiError,
    ConfigurationError,
    EntityRejected,
    InvalidInput,
    MalformedResponse,
    SearchFailed,
    TransportError,
)
from walkin_desk.payloads import normalize_list
from walkin_desk.schemas.customer import (
    Customer,
    CustomerCreate,
    GeneratedCredentials,
    RegisteredCustomer,
)
from walkin_desk.schemas.vehicle import Vehicle, VehicleCreate

logger = structlog.get_logger(__name__)

SEARCH_PATH = "/api/Users/search"
REGISTER_PATH = "/api/auth/register"
VEHICLES_PATH = "/api/Vehicles"


def generate_credentials(
    name: str, randbelow: Callable[[int], int] = secrets.randbelow
) -> GeneratedCredentials:
    """
    Build a username/password pair for a new customer account.

    "Jane Q Doe" -> "jdoe" + 0..999, a single name is used whole. The password
    is the username followed by 0..99 and "!".
    """
    parts = name.split()
    if len(parts) > 1:
        username = (parts[0][0] + parts[-1]).lower()
    else:
        username = name.strip().lower()
    username += str(randbelow(1000))
    password = f"{username}{randbelow(100)}!"
    return GeneratedCredentials(username=username, password=password)


class EntityResolver:
    """Finds or creates the customer and vehicle for a walk-in order."""

    def __init__(self, client: ApiClient):
        self.client = client

    def search_customers(self, term: str) -> list[Customer]:
        term = (term or "").strip()
        if not term:
            raise InvalidInput("Please enter a search term")

        try:
            entries = normalize_list(self.client.get(SEARCH_PATH, params={"term": term}))
        except ConfigurationError:
            raise
        except (TransportError, ApiError) as exc:
            logger.warning("customer_search_failed", error=exc.message)
            raise SearchFailed(getattr(exc, "backend_message", None)) from exc

        customers = []
        for entry in entries:
            try:
                customers.append(Customer.model_validate(entry))
            except ValidationError:
                logger.warning("customer_entry_skipped")
        logger.info("customer_search", results=len(customers))
        return customers

    def create_customer(
        self,
        fields: CustomerCreate,
        credentials: Optional[GeneratedCredentials] = None,
    ) -> RegisteredCustomer:
        """
        Register a customer account on the customer's behalf.

        The generated credentials come back with the customer so the desk
        can hand them over; the account is never created silently.
        """
        credentials = credentials or generate_credentials(fields.name)
        payload = {
            "username": credentials.username,
            "password": credentials.password,
            "confirmPassword": credentials.password,
            "email": fields.email,
            "role": "customer",
            "name": fields.name,
            "phone": fields.phone,
            "address": fields.address or "",
            "imgUrl": "",
        }

        try:
            response = self.client.post(REGISTER_PATH, payload, authenticated=False)
        except ApiError as exc:
            logger.warning("customer_create_rejected", status_code=exc.status_code)
            raise EntityRejected(exc.backend_message or "Failed to create user") from exc

        if not isinstance(response, dict) or not response.get("success"):
            message = response.get("message") if isinstance(response, dict) else None
            raise EntityRejected(message or "Failed to create user")

        try:
            customer = Customer.model_validate(response.get("user"))
        except ValidationError as exc:
            raise MalformedResponse("Invalid user data format received from server") from exc

        logger.info("customer_created", user_id=customer.user_id, username=credentials.username)
        return RegisteredCustomer(customer=customer, credentials=credentials)

    def list_vehicles(self, customer_id: int) -> list[Vehicle]:
        """
        Vehicles owned by a customer.

        Entries without a vehicleId or make, entries that fail validation and
        entries owned by someone else are dropped.
        """
        try:
            raw = self.client.get(f"{VEHICLES_PATH}/user/{customer_id}")
        except ApiError as exc:
            if exc.status_code == 404:
                return []
            raise TransportError(exc.backend_message or "Failed to load user vehicles") from exc
        if raw is None:
            return []
        entries = normalize_list(raw, single_key="vehicleId")

        vehicles = []
        for entry in entries:
            if not isinstance(entry, dict) or entry.get("vehicleId") is None or entry.get("make") is None:
                continue
            entry = dict(entry)
            if entry.get("userId") is None:
                entry["userId"] = customer_id
            try:
                vehicle = Vehicle.model_validate(entry)
            except ValidationError:
                logger.warning("vehicle_entry_skipped", vehicle_id=entry.get("vehicleId"))
                continue
            if vehicle.user_id != customer_id:
                logger.warning(
                    "vehicle_owner_mismatch",
                    vehicle_id=vehicle.vehicle_id,
                    expected=customer_id,
                    actual=vehicle.user_id,
                )
                continue
            vehicles.append(vehicle)
        return vehicles

    def create_vehicle(self, customer_id: int, fields: VehicleCreate) -> Vehicle:
        payload = {**fields.model_dump(by_alias=True), "userId": customer_id}
        try:
            response = self.client.post(VEHICLES_PATH, payload)
        except ApiError as exc:
            logger.warning("vehicle_create_rejected", status_code=exc.status_code)
            raise EntityRejected(exc.backend_message or "Failed to add vehicle") from exc

        if not isinstance(response, dict) or not response:
            raise EntityRejected("Failed to add vehicle")

        entry = dict(response)
        if entry.get("userId") is None:
            entry["userId"] = customer_id
        try:
            vehicle = Vehicle.model_validate(entry)
        except ValidationError as exc:
            raise MalformedResponse("Invalid vehicle data format received from server") from exc

        logger.info("vehicle_created", vehicle_id=vehicle.vehicle_id, user_id=customer_id)
        return vehicle
