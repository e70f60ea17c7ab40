"""Pydantic models for API I/O."""

from .roster import (
    MemberSpecRequest,
    MemberSpecResponse,
    RosterDataResponse,
    RosterFilterModel,
    RosterQueryRequest,
    RosterQueryResponse,
    SaveRosterRequest,
    SaveRosterResponse,
)
from .updates import (
    ApplyUpdateResponse,
    EnrichmentResponse,
    MergeChangeResponse,
    MergePreviewRequest,
    MergePreviewResponse,
    UpdateCheckResponse,
)

__all__ = [
    "ApplyUpdateResponse",
    "EnrichmentResponse",
    "MemberSpecRequest",
    "MemberSpecResponse",
    "MergeChangeResponse",
    "MergePreviewRequest",
    "MergePreviewResponse",
    "RosterDataResponse",
    "RosterFilterModel",
    "RosterQueryRequest",
    "RosterQueryResponse",
    "SaveRosterRequest",
    "SaveRosterResponse",
    "UpdateCheckResponse",
]
