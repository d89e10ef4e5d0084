"""
Walk-in order composition: selection state, validation and pricing.

The composer holds what the operator has picked so far and answers two
questions after every change: is the order submittable, and what does it
cost. Prices are always recomputed from the current selections.
"""
import enum
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, Optional, Protocol

import structlog

from walkin_desk.errors import DuplicateSubmission, InvalidInput
from walkin_desk.schemas.customer import Customer
from walkin_desk.schemas.mechanic import Mechanic
from walkin_desk.schemas.order import Bill, OrderRoute
from walkin_desk.schemas.service import ServiceOffering
from walkin_desk.schemas.vehicle import Vehicle

logger = structlog.get_logger(__name__)


class CompositionState(str, enum.Enum):
    EMPTY = "Empty"
    PARTIALLY_COMPOSED = "PartiallyComposed"
    VALID = "Valid"
    SUBMITTING = "Submitting"
    COMMITTED = "Committed"
    FAILED = "Failed"


@dataclass
class OrderComposition:
    customer: Optional[Customer] = None
    vehicle: Optional[Vehicle] = None
    service: Optional[ServiceOffering] = None
    includes_inspection: bool = False
    inspection: Optional[ServiceOffering] = None
    mechanic: Optional[Mechanic] = None
    notes: str = ""

    @property
    def total_amount(self) -> float:
        return compute_total(self)

    @property
    def is_empty(self) -> bool:
        return (
            self.customer is None
            and self.vehicle is None
            and self.service is None
            and not self.includes_inspection
            and self.inspection is None
            and self.mechanic is None
            and not self.notes
        )


def compute_total(composition: OrderComposition) -> float:
    """Service price plus the inspection price when inspection is included."""
    total = 0.0
    if composition.service is not None:
        total += composition.service.price
    if composition.includes_inspection and composition.inspection is not None:
        total += composition.inspection.price
    return total


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def message_for(self, field_name: str) -> Optional[str]:
        return next((e.message for e in self.errors if e.field == field_name), None)

    def as_dict(self) -> dict[str, str]:
        return {e.field: e.message for e in self.errors}


def validate(composition: OrderComposition) -> ValidationResult:
    """
    Check a composition against the walk-in order rules.

    Errors are keyed by the payload field they concern. An inspection that is
    switched on but has no type chosen is always an error, even when a
    service alone would make the order complete.
    """
    errors = []

    if composition.customer is None:
        errors.append(FieldError("userId", "Please select a customer first"))

    if composition.vehicle is None:
        errors.append(FieldError("vehicleId", "Please select a vehicle"))
    elif composition.customer is not None and composition.vehicle.user_id != composition.customer.user_id:
        errors.append(FieldError("vehicleId", "The vehicle does not belong to the selected customer"))

    has_service = composition.service is not None
    has_inspection = composition.includes_inspection and composition.inspection is not None
    if composition.includes_inspection and composition.inspection is None:
        errors.append(
            FieldError("inspectionTypeId", "Please select an inspection type when inspection is included")
        )
    elif not has_service and not has_inspection:
        errors.append(FieldError("serviceId", "Please select at least one service or inspection"))

    if composition.mechanic is None:
        errors.append(FieldError("mechanicId", "Please select a mechanic for the walk-in order"))
    elif not composition.mechanic.is_available:
        errors.append(
            FieldError("mechanicId", f"{composition.mechanic.name} has too many active appointments")
        )

    return ValidationResult(tuple(errors))


def route_for(composition: OrderComposition) -> OrderRoute:
    """Service-only orders go to the mechanic queue, anything with an inspection to orders."""
    if composition.service is not None and not composition.includes_inspection:
        return OrderRoute.SERVICE_ONLY
    return OrderRoute.INSPECTION_INVOLVED


def describe_order(composition: OrderComposition) -> str:
    message = "Walk-in order created successfully"
    if composition.includes_inspection and composition.service is not None:
        message += " with inspection and service"
    elif composition.includes_inspection:
        message += " with inspection only"
    else:
        message += " with service only"
    if composition.mechanic is not None:
        message += " and mechanic assigned"
    return message


class Submitter(Protocol):
    def submit(self, composition: OrderComposition) -> Bill: ...


@dataclass
class SubmissionResult:
    """Outcome of OrderComposer.submit() when nothing was raised."""
    validation: ValidationResult = field(default_factory=ValidationResult)
    bill: Optional[Bill] = None
    composition: Optional[OrderComposition] = None
    route: Optional[OrderRoute] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.bill is not None


class OrderComposer:
    """
    State machine over one OrderComposition.

    Empty -> PartiallyComposed <-> Valid -> Submitting -> Committed | Failed.
    A failed submission keeps every selection so the operator can retry.
    """

    def __init__(self):
        self.composition = OrderComposition()
        self.bill: Optional[Bill] = None
        self.last_error: Optional[Exception] = None
        self._phase: Optional[CompositionState] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> CompositionState:
        phase = self._phase
        if phase is not None:
            return phase
        if self.composition.is_empty:
            return CompositionState.EMPTY
        if validate(self.composition).ok:
            return CompositionState.VALID
        return CompositionState.PARTIALLY_COMPOSED

    @property
    def total_amount(self) -> float:
        return self.composition.total_amount

    def validate(self) -> ValidationResult:
        return validate(self.composition)

    def _mutate(self, change: Callable[[OrderComposition], None]) -> None:
        with self._lock:
            if self._phase == CompositionState.SUBMITTING:
                raise InvalidInput("The order is being submitted")
            if self._phase == CompositionState.COMMITTED:
                raise InvalidInput("The order has already been submitted")
            change(self.composition)
            self._phase = None
            self.last_error = None

    @contextmanager
    def batch(self) -> Iterator["OrderComposer"]:
        """
        Apply several changes as one.

        If any change inside the block raises, the composition and phase are
        put back as they were before the block and the error propagates.
        """
        with self._lock:
            saved = (replace(self.composition), self._phase, self.last_error)
        try:
            yield self
        except Exception:
            with self._lock:
                if self._phase not in (CompositionState.SUBMITTING, CompositionState.COMMITTED):
                    self.composition, self._phase, self.last_error = saved
            raise

    # Customer / vehicle

    def select_customer(self, customer: Customer) -> None:
        def change(c: OrderComposition):
            if c.customer is None or c.customer.user_id != customer.user_id:
                c.vehicle = None
            c.customer = customer
        self._mutate(change)

    def clear_customer(self) -> None:
        def change(c: OrderComposition):
            c.customer = None
            c.vehicle = None
        self._mutate(change)

    def select_vehicle(self, vehicle: Vehicle) -> None:
        def change(c: OrderComposition):
            if c.customer is None:
                raise InvalidInput("Please select a user first")
            if vehicle.user_id != c.customer.user_id:
                raise InvalidInput("The vehicle does not belong to the selected customer")
            c.vehicle = vehicle
        self._mutate(change)

    def clear_vehicle(self) -> None:
        self._mutate(lambda c: setattr(c, "vehicle", None))

    # Service / inspection

    def select_service(self, service: ServiceOffering) -> None:
        if service.is_inspection:
            raise InvalidInput(f"{service.service_name} is an inspection, not a service")
        self._mutate(lambda c: setattr(c, "service", service))

    def clear_service(self) -> None:
        self._mutate(lambda c: setattr(c, "service", None))

    def set_includes_inspection(self, included: bool) -> None:
        def change(c: OrderComposition):
            c.includes_inspection = included
            if not included:
                c.inspection = None
        self._mutate(change)

    def select_inspection(self, inspection: ServiceOffering) -> None:
        if not inspection.is_inspection:
            raise InvalidInput(f"{inspection.service_name} is not an inspection type")
        if not self.composition.includes_inspection:
            raise InvalidInput("Include an inspection before choosing its type")
        self._mutate(lambda c: setattr(c, "inspection", inspection))

    def clear_inspection(self) -> None:
        self._mutate(lambda c: setattr(c, "inspection", None))

    # Mechanic

    def select_mechanic(self, mechanic: Mechanic) -> None:
        if not mechanic.is_available:
            raise InvalidInput(f"{mechanic.name} has too many active appointments")
        self._mutate(lambda c: setattr(c, "mechanic", mechanic))

    def clear_mechanic(self) -> None:
        self._mutate(lambda c: setattr(c, "mechanic", None))

    def refresh_mechanic(self, mechanics: list[Mechanic]) -> None:
        """
        Swap the selected mechanic for their entry in a newer snapshot.

        The selection is kept even if the mechanic is now busy; validation
        then reports it until the operator picks someone else.
        """
        current = self.composition.mechanic
        if current is None:
            return
        fresh = next((m for m in mechanics if m.mechanic_id == current.mechanic_id), None)
        if fresh is not None:
            self._mutate(lambda c: setattr(c, "mechanic", fresh))

    def set_notes(self, notes: Optional[str]) -> None:
        self._mutate(lambda c: setattr(c, "notes", notes or ""))

    # Submission

    def submit(self, submission: Submitter) -> SubmissionResult:
        """
        Commit the composition through ``submission``.

        An incomplete composition comes back as a result carrying field errors
        and nothing is sent. Calling again while a submission is running, or
        after it committed, raises DuplicateSubmission. Backend and transport
        failures are re-raised after the composer moves to Failed.
        """
        with self._lock:
            if self._phase == CompositionState.SUBMITTING:
                raise DuplicateSubmission()
            if self._phase == CompositionState.COMMITTED:
                raise DuplicateSubmission("This order has already been submitted")
            result = validate(self.composition)
            if not result.ok:
                logger.info("submit_blocked", fields=sorted(result.as_dict()))
                return SubmissionResult(validation=result)
            self._phase = CompositionState.SUBMITTING
            self.last_error = None
            submitted = replace(self.composition)

        try:
            bill = submission.submit(submitted)
        except Exception as exc:
            with self._lock:
                self._phase = CompositionState.FAILED
                self.last_error = exc
            raise

        with self._lock:
            self._phase = CompositionState.COMMITTED
            self.bill = bill

        return SubmissionResult(
            bill=bill,
            composition=submitted,
            route=route_for(submitted),
            message=describe_order(submitted),
        )
