"""
One walk-in intake from start to bill.

Ties the catalog, the customer/vehicle resolver, the mechanic snapshot, the
composer and submission together, and keeps the operator-facing notices.
"""
from dataclasses import dataclass
from typing import Optional

import structlog

from walkin_desk.auth import AuthContext
from walkin_desk.client import ApiClient
from walkin_desk.config import Settings
from walkin_desk.errors import (
    CatalogUnavailable,
    InvalidInput,
    SubmissionRejected,
    TransportError,
    WalkInError,
)
from walkin_desk.schemas.customer import Customer, CustomerCreate, RegisteredCustomer
from walkin_desk.schemas.mechanic import Mechanic
from walkin_desk.schemas.vehicle import Vehicle, VehicleCreate
from walkin_desk.services.catalog import Catalog, CatalogSnapshot
from walkin_desk.services.composer import OrderComposer, SubmissionResult
from walkin_desk.services.mechanics import MechanicAvailabilityTracker
from walkin_desk.services.resolver import EntityResolver
from walkin_desk.services.submission import OrderSubmission

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Notice:
    level: str  # "success", "info" or "error"
    message: str


class WalkInWorkflow:
    """
    Coordinates a single walk-in order.

    Customers and vehicles can only be picked by id after they came back from
    a search, a vehicle listing or a create call in this workflow.
    """

    def __init__(
        self,
        catalog: Catalog,
        resolver: EntityResolver,
        tracker: MechanicAvailabilityTracker,
        submission: OrderSubmission,
        composer: Optional[OrderComposer] = None,
        client: Optional[ApiClient] = None,
    ):
        self.catalog = catalog
        self.resolver = resolver
        self.tracker = tracker
        self.submission = submission
        self.composer = composer or OrderComposer()
        self.client = client
        self.snapshot = CatalogSnapshot()
        self.notices: list[Notice] = []
        self.created_customers: list[int] = []
        self.created_vehicles: list[int] = []
        self.result: Optional[SubmissionResult] = None
        self._customers: dict[int, Customer] = {}
        self._vehicles: dict[int, Vehicle] = {}

    @classmethod
    def for_auth(cls, auth: AuthContext, settings: Optional[Settings] = None) -> "WalkInWorkflow":
        client = ApiClient(auth, settings)
        return cls(
            catalog=Catalog(client),
            resolver=EntityResolver(client),
            tracker=MechanicAvailabilityTracker(client),
            submission=OrderSubmission(client),
            client=client,
        )

    def close(self) -> None:
        """Release the backend connection pool."""
        if self.client is not None:
            self.client.close()

    def notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level, message))

    def _fail(self, exc: WalkInError) -> None:
        self.notify("error", exc.message)

    # Start-up reads

    def start(self) -> None:
        """Load the service menu and mechanic snapshot; failures leave them empty."""
        try:
            self.snapshot = self.catalog.load()
        except CatalogUnavailable as exc:
            self.snapshot = CatalogSnapshot()
            self._fail(exc)
        try:
            self.tracker.load_available()
        except TransportError as exc:
            self.tracker.mechanics = []
            self.notify("error", exc.message or "Failed to load available mechanics")

    @property
    def mechanics(self) -> list[Mechanic]:
        return self.tracker.mechanics

    def refresh_mechanics(self) -> list[Mechanic]:
        try:
            mechanics = self.tracker.refresh()
        except TransportError as exc:
            self._fail(exc)
            raise
        self.composer.refresh_mechanic(mechanics)
        return mechanics

    # Customer / vehicle

    def search_customers(self, term: str) -> list[Customer]:
        try:
            customers = self.resolver.search_customers(term)
        except WalkInError as exc:
            self._fail(exc)
            raise
        for customer in customers:
            self._customers[customer.user_id] = customer
        return customers

    def create_customer(self, fields: CustomerCreate) -> RegisteredCustomer:
        try:
            registered = self.resolver.create_customer(fields)
        except WalkInError as exc:
            self._fail(exc)
            raise
        customer = registered.customer
        self._customers[customer.user_id] = customer
        self.created_customers.append(customer.user_id)
        self.composer.select_customer(customer)
        self.notify(
            "success",
            "User created successfully. "
            f"Username: {registered.credentials.username}, Password: {registered.credentials.password}",
        )
        return registered

    def select_customer(self, user_id: int) -> list[Vehicle]:
        """Select a known customer and load their vehicles (empty on failure)."""
        customer = self._customers.get(user_id)
        if customer is None:
            raise InvalidInput("Search for the customer before selecting them")
        self.composer.select_customer(customer)

        try:
            vehicles = self.resolver.list_vehicles(user_id)
        except TransportError as exc:
            self._fail(exc)
            return []
        for vehicle in vehicles:
            self._vehicles[vehicle.vehicle_id] = vehicle
        return vehicles

    def create_vehicle(self, fields: VehicleCreate) -> Vehicle:
        customer = self.composer.composition.customer
        if customer is None:
            raise InvalidInput("Please select a user first")
        try:
            vehicle = self.resolver.create_vehicle(customer.user_id, fields)
        except WalkInError as exc:
            self._fail(exc)
            raise
        self._vehicles[vehicle.vehicle_id] = vehicle
        self.created_vehicles.append(vehicle.vehicle_id)
        self.composer.select_vehicle(vehicle)
        self.notify("success", "Vehicle added successfully")
        return vehicle

    def select_vehicle(self, vehicle_id: int) -> None:
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            raise InvalidInput("Vehicle not found for the selected customer")
        self.composer.select_vehicle(vehicle)

    # Order contents

    def select_service(self, service_id: int) -> None:
        service = self.snapshot.find_service(service_id)
        if service is None:
            raise InvalidInput("Service not found")
        self.composer.select_service(service)

    def set_includes_inspection(self, included: bool) -> None:
        self.composer.set_includes_inspection(included)

    def select_inspection(self, inspection_id: int) -> None:
        inspection = self.snapshot.find_inspection(inspection_id)
        if inspection is None:
            raise InvalidInput("Inspection type not found")
        self.composer.select_inspection(inspection)

    def select_mechanic(self, mechanic_id: int) -> None:
        mechanic = self.tracker.find(mechanic_id)
        if mechanic is None:
            raise InvalidInput("Mechanic not found")
        if not self.tracker.is_selectable(mechanic):
            raise InvalidInput(f"{mechanic.name} has too many active appointments")
        self.composer.select_mechanic(mechanic)

    def set_notes(self, notes: Optional[str]) -> None:
        self.composer.set_notes(notes)

    def update_selection(self, changes: dict) -> None:
        """
        Apply several selection changes at once, all or nothing.

        Keys are ``vehicle_id``, ``service_id``, ``includes_inspection``,
        ``inspection_id``, ``mechanic_id`` and ``notes``, applied in that
        order. A ``None`` id clears that selection.
        """
        composer = self.composer
        with composer.batch():
            if "vehicle_id" in changes:
                if changes["vehicle_id"] is None:
                    composer.clear_vehicle()
                else:
                    self.select_vehicle(changes["vehicle_id"])
            if "service_id" in changes:
                if changes["service_id"] is None:
                    composer.clear_service()
                else:
                    self.select_service(changes["service_id"])
            if "includes_inspection" in changes:
                self.set_includes_inspection(bool(changes["includes_inspection"]))
            if "inspection_id" in changes:
                if changes["inspection_id"] is None:
                    composer.clear_inspection()
                else:
                    self.select_inspection(changes["inspection_id"])
            if "mechanic_id" in changes:
                if changes["mechanic_id"] is None:
                    composer.clear_mechanic()
                else:
                    self.select_mechanic(changes["mechanic_id"])
            if "notes" in changes:
                self.set_notes(changes["notes"])

    # Submission

    def submit(self) -> SubmissionResult:
        """
        Submit the order once.

        A rejection from the backend re-fetches mechanic availability so a
        mechanic who filled up meanwhile shows as busy; selections stay.
        """
        try:
            result = self.composer.submit(self.submission)
        except SubmissionRejected as exc:
            self._fail(exc)
            try:
                self.refresh_mechanics()
            except TransportError:
                logger.warning("mechanics_refresh_after_rejection_failed")
            if self.created_customers or self.created_vehicles:
                logger.warning(
                    "walkin_partial_intake",
                    created_customers=self.created_customers,
                    created_vehicles=self.created_vehicles,
                )
            raise
        except WalkInError as exc:
            self._fail(exc)
            raise

        if not result.ok:
            self.notify("error", result.validation.errors[0].message)
            return result

        self.result = result
        self.notify("success", result.message)
        return result
