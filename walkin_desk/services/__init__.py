"""
Walk-in order workflow services.
"""
from walkin_desk.services.catalog import Catalog, CatalogSnapshot, partition_offerings
from walkin_desk.services.composer import (
    CompositionState, OrderComposer, OrderComposition, SubmissionResult, ValidationResult,
    compute_total, describe_order, route_for, validate,
)
from walkin_desk.services.mechanics import MechanicAvailabilityTracker
from walkin_desk.services.resolver import EntityResolver, generate_credentials
from walkin_desk.services.submission import OrderSubmission, build_request
from walkin_desk.services.workflow import Notice, WalkInWorkflow

__all__ = [
    "Catalog", "CatalogSnapshot", "partition_offerings",
    "CompositionState", "OrderComposer", "OrderComposition", "SubmissionResult", "ValidationResult",
    "compute_total", "describe_order", "route_for", "validate",
    "MechanicAvailabilityTracker",
    "EntityResolver", "generate_credentials",
    "OrderSubmission", "build_request",
    "Notice", "WalkInWorkflow",
]
