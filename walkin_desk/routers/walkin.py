"""
Walk-in order routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from walkin_desk.auth import AuthContext, get_auth_context
from walkin_desk.config import Settings, get_settings
from walkin_desk.errors import (
    ConfigurationError,
    DuplicateSubmission,
    EntityRejected,
    InvalidInput,
    SubmissionRejected,
    WalkInError,
)
from walkin_desk.schemas.customer import Customer, CustomerCreate, RegisteredCustomer
from walkin_desk.schemas.mechanic import Mechanic
from walkin_desk.schemas.session import (
    CompositionView,
    CustomerSelection,
    NoticeView,
    SelectionUpdate,
    SessionView,
    SubmitResponse,
)
from walkin_desk.schemas.vehicle import Vehicle, VehicleCreate
from walkin_desk.services.workflow import WalkInWorkflow
from walkin_desk.sessions import SessionNotFound, SessionRegistry, WorkflowFactory, WorkflowSession

router = APIRouter(prefix="/walkin", tags=["walk-in"])

_registry = SessionRegistry(ttl=get_settings().session_ttl)


def get_registry() -> SessionRegistry:
    return _registry


def get_workflow_factory(settings: Settings = Depends(get_settings)) -> WorkflowFactory:
    return lambda auth: WalkInWorkflow.for_auth(auth, settings)


def get_session(
    session_id: str,
    auth: AuthContext = Depends(get_auth_context),
    registry: SessionRegistry = Depends(get_registry),
) -> WorkflowSession:
    if not auth.is_authenticated:
        raise _http_error(ConfigurationError())
    try:
        return registry.get(session_id, auth)
    except SessionNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Walk-in session not found"
        )


def _http_error(exc: WalkInError) -> HTTPException:
    if isinstance(exc, ConfigurationError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, DuplicateSubmission):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, InvalidInput):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (SubmissionRejected, EntityRejected)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=exc.message)


def _view(session: WorkflowSession) -> SessionView:
    workflow = session.workflow
    composer = workflow.composer
    composition = composer.composition
    return SessionView(
        session_id=session.session_id,
        state=composer.state.value,
        composition=CompositionView(
            customer=composition.customer,
            vehicle=composition.vehicle,
            service=composition.service,
            includes_inspection=composition.includes_inspection,
            inspection=composition.inspection,
            mechanic=composition.mechanic,
            notes=composition.notes,
            total_amount=composition.total_amount,
        ),
        errors=composer.validate().as_dict(),
        notices=[NoticeView(level=n.level, message=n.message) for n in workflow.notices],
        regular_services=workflow.snapshot.regular,
        inspection_services=workflow.snapshot.inspections,
        mechanics=workflow.mechanics,
        created_customers=workflow.created_customers,
        created_vehicles=workflow.created_vehicles,
    )


@router.post("/sessions", response_model=SessionView, status_code=status.HTTP_201_CREATED)
def open_session(
    auth: AuthContext = Depends(get_auth_context),
    registry: SessionRegistry = Depends(get_registry),
    factory: WorkflowFactory = Depends(get_workflow_factory),
):
    """
    Start a walk-in intake: loads the service menu and mechanic availability.
    """
    try:
        session = registry.open(auth, factory)
    except WalkInError as exc:
        raise _http_error(exc)
    return _view(session)


@router.get("/sessions/{session_id}", response_model=SessionView)
def get_session_view(session: WorkflowSession = Depends(get_session)):
    return _view(session)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_session(
    session: WorkflowSession = Depends(get_session),
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Cancel the intake and discard the composition.
    """
    registry.close(session.session_id, session.auth)
    return None


@router.get("/sessions/{session_id}/customers", response_model=List[Customer])
def search_customers(
    term: str = Query(default=""),
    session: WorkflowSession = Depends(get_session),
):
    try:
        return session.workflow.search_customers(term)
    except WalkInError as exc:
        raise _http_error(exc)


@router.post(
    "/sessions/{session_id}/customers",
    response_model=RegisteredCustomer,
    status_code=status.HTTP_201_CREATED,
)
def create_customer(
    fields: CustomerCreate,
    session: WorkflowSession = Depends(get_session),
):
    """
    Register a new customer and select them. The response carries the
    generated login, which must be handed to the customer.
    """
    try:
        return session.workflow.create_customer(fields)
    except WalkInError as exc:
        raise _http_error(exc)


@router.put("/sessions/{session_id}/customer", response_model=List[Vehicle])
def select_customer(
    selection: CustomerSelection,
    session: WorkflowSession = Depends(get_session),
):
    try:
        return session.workflow.select_customer(selection.user_id)
    except WalkInError as exc:
        raise _http_error(exc)


@router.post(
    "/sessions/{session_id}/vehicles",
    response_model=Vehicle,
    status_code=status.HTTP_201_CREATED,
)
def create_vehicle(
    fields: VehicleCreate,
    session: WorkflowSession = Depends(get_session),
):
    try:
        return session.workflow.create_vehicle(fields)
    except WalkInError as exc:
        raise _http_error(exc)


@router.patch("/sessions/{session_id}/selection", response_model=SessionView)
def update_selection(
    update: SelectionUpdate,
    session: WorkflowSession = Depends(get_session),
):
    """
    Apply selection changes in a fixed order: vehicle, service, inspection
    toggle, inspection type, mechanic, notes. Either every change is applied
    or, on error, none is.
    """
    try:
        session.workflow.update_selection(update.model_dump(exclude_unset=True))
    except WalkInError as exc:
        raise _http_error(exc)

    return _view(session)


@router.post("/sessions/{session_id}/mechanics/refresh", response_model=List[Mechanic])
def refresh_mechanics(session: WorkflowSession = Depends(get_session)):
    try:
        return session.workflow.refresh_mechanics()
    except WalkInError as exc:
        raise _http_error(exc)


@router.post("/sessions/{session_id}/submit", response_model=SubmitResponse)
def submit_order(
    session: WorkflowSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """
    Submit the walk-in order. Incomplete orders come back as 422 with
    per-field messages; nothing is sent to the backend in that case.
    """
    try:
        result = session.workflow.submit()
    except WalkInError as exc:
        raise _http_error(exc)

    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": result.validation.errors[0].message,
                "errors": result.validation.as_dict(),
            },
        )

    return SubmitResponse(
        bill=result.bill,
        route=result.route,
        message=result.message,
        subtotal=result.bill.subtotal(settings.sales_tax_rate),
        sales_tax=result.bill.sales_tax(settings.sales_tax_rate),
    )
