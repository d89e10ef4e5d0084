"""
Pydantic schemas for the workshop's service menu.
"""
from pydantic import Field
from typing import Optional

from walkin_desk.schemas.base import WireModel

INSPECTION_CATEGORY = "inspection"


class ServiceOffering(WireModel):
    """One entry of the service menu."""
    service_id: int
    service_name: str
    category: str
    sub_category: Optional[str] = None
    price: float = Field(ge=0)
    description: Optional[str] = None

    @property
    def is_inspection(self) -> bool:
        return self.category.lower() == INSPECTION_CATEGORY
