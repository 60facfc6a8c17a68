from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Output schema base: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    upstream_status: Optional[int] = None


class NotFoundResponse(CamelModel):
    success: bool = False
    error: str
    path: str
    available_endpoints: List[str]
