from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from guildroster.query import FilterField, FilterOperator, SortDirection


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RosterDataResponse(CamelModel):
    version: str
    last_updated: int
    members: List[dict[str, Any]]


class SaveRosterRequest(CamelModel):
    # Members are validated by the service so bad rows surface as success=false.
    members: List[dict[str, Any]]
    last_updated: int = 0


class SaveRosterResponse(CamelModel):
    success: bool
    error: Optional[str] = None


class MemberSpecRequest(CamelModel):
    main_spec: str = Field(..., min_length=1)
    main_role: Optional[str] = None


class MemberSpecResponse(CamelModel):
    success: bool
    member: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class RosterFilterModel(CamelModel):
    id: int
    field: FilterField
    operator: FilterOperator
    value: str | float = ""


class RosterQueryRequest(CamelModel):
    filters: List[RosterFilterModel] = Field(default_factory=list)
    match_all: bool = True
    filters_enabled: bool = True
    sort_key: str = "name"
    sort_direction: SortDirection = "asc"


class RosterQueryResponse(CamelModel):
    total: int
    matched: int
    role_counts: dict[str, int]
    class_counts: dict[str, int]
    members: List[dict[str, Any]]
