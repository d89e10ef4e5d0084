"""
Turning a valid composition into a walk-in order on the backend.
"""
import structlog
from pydantic import ValidationError

from walkin_desk.client import ApiClient
from walkin_desk.errors import (
    ApiError,
    AuthenticationRequired,
    InvalidInput,
    MalformedResponse,
    SubmissionRejected,
    TransportError,
)
from walkin_desk.schemas.order import Bill, WalkInOrderRequest
from walkin_desk.services.composer import OrderComposition, validate

logger = structlog.get_logger(__name__)

WALKIN_ORDERS_PATH = "/api/Orders/walkin"

# Statuses where the backend looked at the order and said no.
REJECTION_STATUSES = {400, 404, 409, 422}


def build_request(composition: OrderComposition) -> WalkInOrderRequest:
    """Build the walk-in payload; the composition must already be valid."""
    result = validate(composition)
    if not result.ok:
        raise InvalidInput(result.errors[0].message)

    inspection = composition.inspection if composition.includes_inspection else None
    return WalkInOrderRequest(
        user_id=composition.customer.user_id,
        vehicle_id=composition.vehicle.vehicle_id,
        service_id=composition.service.service_id if composition.service else None,
        includes_inspection=composition.includes_inspection,
        inspection_type_id=inspection.service_id if inspection else None,
        inspection_sub_category=(inspection.sub_category or "") if inspection else "",
        total_amount=composition.total_amount,
        notes=composition.notes or "",
        mechanic_id=composition.mechanic.mechanic_id,
    )


class OrderSubmission:
    """Posts walk-in orders and hands back the bill."""

    def __init__(self, client: ApiClient):
        self.client = client

    def submit(self, composition: OrderComposition) -> Bill:
        request = build_request(composition)
        payload = request.model_dump(by_alias=True)
        logger.info(
            "walkin_submit",
            user_id=request.user_id,
            vehicle_id=request.vehicle_id,
            service_id=request.service_id,
            inspection_type_id=request.inspection_type_id,
            mechanic_id=request.mechanic_id,
            total_amount=request.total_amount,
        )

        try:
            response = self.client.post(WALKIN_ORDERS_PATH, payload)
        except MalformedResponse:
            # 2xx with a body that is not JSON.
            response = None
        except ApiError as exc:
            if exc.status_code == 403:
                raise AuthenticationRequired("You are not allowed to create walk-in orders") from exc
            if exc.status_code in REJECTION_STATUSES:
                logger.warning("walkin_rejected", status_code=exc.status_code, message=exc.backend_message)
                raise SubmissionRejected(exc.backend_message) from exc
            raise TransportError(exc.backend_message) from exc

        # 2xx: the order is committed even if the bill is missing or unreadable.
        bill = Bill()
        if response is None:
            logger.warning("walkin_bill_missing")
        else:
            try:
                bill = Bill.model_validate(response)
            except ValidationError:
                logger.warning("walkin_bill_unparsed")

        logger.info("walkin_committed", order_id=bill.order.order_id)
        return bill
