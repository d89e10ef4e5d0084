"""
Pydantic schemas for Mechanic availability.
"""
import enum

from pydantic import Field, model_validator

from walkin_desk.schemas.base import WireModel

# A mechanic holding this many active appointments takes no new ones.
MECHANIC_CAPACITY = 3


class MechanicStatus(str, enum.Enum):
    """Mechanic availability."""
    AVAILABLE = "Available"
    BUSY = "Busy"


class Mechanic(WireModel):
    """A mechanic together with their current load."""
    mechanic_id: int
    name: str
    email: str = ""
    phone: str = ""
    current_appointments: int = Field(default=0, ge=0)
    status: MechanicStatus = MechanicStatus.AVAILABLE

    @model_validator(mode="before")
    @classmethod
    def derive_status(cls, data):
        # The count is authoritative; whatever status the backend sent is replaced.
        if isinstance(data, dict):
            data = dict(data)
            count = data.get("currentAppointments", data.get("current_appointments", 0)) or 0
            try:
                busy = int(count) >= MECHANIC_CAPACITY
            except (TypeError, ValueError):
                busy = False
            data["status"] = MechanicStatus.BUSY if busy else MechanicStatus.AVAILABLE
        return data

    @property
    def is_available(self) -> bool:
        return self.status == MechanicStatus.AVAILABLE
