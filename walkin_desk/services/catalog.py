"""
Service menu loading and the regular/inspection split.
"""
from dataclasses import dataclass, field
from typing import Optional

import structlog
from pydantic import ValidationError

from walkin_desk.client import ApiClient
from walkin_desk.errors import ApiError, CatalogUnavailable, ConfigurationError, TransportError
from walkin_desk.payloads import normalize_list
from walkin_desk.schemas.service import ServiceOffering

logger = structlog.get_logger(__name__)

SERVICES_PATH = "/api/Services"


def partition_offerings(
    offerings: list[ServiceOffering],
) -> tuple[list[ServiceOffering], list[ServiceOffering]]:
    """Split offerings into (regular, inspections); each lands in exactly one."""
    regular = [o for o in offerings if not o.is_inspection]
    inspections = [o for o in offerings if o.is_inspection]
    return regular, inspections


@dataclass
class CatalogSnapshot:
    """The service menu as loaded at workflow start."""
    offerings: list[ServiceOffering] = field(default_factory=list)
    regular: list[ServiceOffering] = field(default_factory=list)
    inspections: list[ServiceOffering] = field(default_factory=list)

    @classmethod
    def from_offerings(cls, offerings: list[ServiceOffering]) -> "CatalogSnapshot":
        regular, inspections = partition_offerings(offerings)
        return cls(offerings=list(offerings), regular=regular, inspections=inspections)

    def find_service(self, service_id: int) -> Optional[ServiceOffering]:
        return next((o for o in self.regular if o.service_id == service_id), None)

    def find_inspection(self, service_id: int) -> Optional[ServiceOffering]:
        return next((o for o in self.inspections if o.service_id == service_id), None)


class Catalog:
    """Reads the service menu from the backend."""

    def __init__(self, client: ApiClient):
        self.client = client

    def load_offerings(self) -> list[ServiceOffering]:
        try:
            raw = self.client.get(SERVICES_PATH)
            entries = normalize_list(raw)
        except ConfigurationError:
            raise
        except (TransportError, ApiError) as exc:
            logger.error("catalog_load_failed", error=exc.message)
            raise CatalogUnavailable(getattr(exc, "backend_message", None)) from exc

        offerings = []
        for entry in entries:
            try:
                offerings.append(ServiceOffering.model_validate(entry))
            except ValidationError:
                logger.warning("catalog_entry_skipped", entry=entry)
        logger.info("catalog_loaded", count=len(offerings))
        return offerings

    def load(self) -> CatalogSnapshot:
        return CatalogSnapshot.from_offerings(self.load_offerings())
