"""
Point-in-time view of which mechanics can take a walk-in order.
"""
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import ValidationError

from walkin_desk.client import ApiClient
from walkin_desk.errors import ApiError, TransportError
from walkin_desk.payloads import normalize_list
from walkin_desk.schemas.mechanic import Mechanic, MechanicStatus

logger = structlog.get_logger(__name__)

AVAILABLE_MECHANICS_PATH = "/api/MechanicServices/available"


class MechanicAvailabilityTracker:
    """
    Snapshot of mechanics and their appointment load.

    Not a live view: another desk can fill a mechanic's last slot after the
    snapshot was taken, and the backend has the final word at submission.
    """

    def __init__(self, client: ApiClient):
        self.client = client
        self.mechanics: list[Mechanic] = []
        self.fetched_at: Optional[datetime] = None

    def load_available(self) -> list[Mechanic]:
        try:
            entries = normalize_list(self.client.get(AVAILABLE_MECHANICS_PATH))
        except ApiError as exc:
            raise TransportError(exc.backend_message or "Failed to load available mechanics") from exc

        mechanics = []
        for entry in entries:
            try:
                mechanics.append(Mechanic.model_validate(entry))
            except ValidationError:
                logger.warning("mechanic_entry_skipped")

        self.mechanics = mechanics
        self.fetched_at = datetime.now(timezone.utc)
        logger.info(
            "mechanics_loaded",
            total=len(mechanics),
            available=sum(1 for m in mechanics if m.is_available),
        )
        return mechanics

    refresh = load_available

    @staticmethod
    def is_selectable(mechanic: Mechanic) -> bool:
        return mechanic.status == MechanicStatus.AVAILABLE

    def find(self, mechanic_id: int) -> Optional[Mechanic]:
        return next((m for m in self.mechanics if m.mechanic_id == mechanic_id), None)
