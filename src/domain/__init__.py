"""Domain layer: errors, constants and schemas."""

from .errors import (
    EngineError,
    ErrorCodes,
    LastRequiredSlotError,
    TemplateNotFoundError,
    TransportError,
    ValidationError,
)
from .schemas import (
    ComponentType,
    ConflictResolution,
    KeyInfo,
    KeyListing,
    ReconcilePlan,
    StoredComponent,
    Template,
    TemplateCategory,
    TemplateComponent,
)

__all__ = [
    "EngineError",
    "ErrorCodes",
    "ValidationError",
    "LastRequiredSlotError",
    "TemplateNotFoundError",
    "TransportError",
    "ComponentType",
    "TemplateCategory",
    "ConflictResolution",
    "TemplateComponent",
    "StoredComponent",
    "Template",
    "KeyInfo",
    "KeyListing",
    "ReconcilePlan",
]
