"""Pydantic schemas for authentication and provider credentials."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from notely.core.schemas_common import CamelModel


class User(BaseModel):
    """Row of the ``users`` table (credential column excluded)."""

    id: UUID
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None


class MeResponse(CamelModel):
    id: UUID
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    has_api_key: bool = False


class ApiKeyUpdate(CamelModel):
    api_key: str = Field(..., min_length=8)
