"""Pydantic schemas for companies."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CompanyCreate(BaseModel):
    # Presence of name is checked by the router so the client gets a 400.
    name: Optional[str] = Field(None, max_length=255, description="Company name (required, unique)")
    url: Optional[str] = Field(None, description="Store URL")
    domain: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class CompanyBulkCreate(BaseModel):
    companies: Optional[List[CompanyCreate]] = None


class CompanyStatusUpdate(BaseModel):
    is_active: Optional[bool] = None


class CompanyResponse(BaseModel):
    id: int
    name: str
    url: Optional[str] = None
    domain: Optional[str] = None
    industry: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CompanyBulkResponse(BaseModel):
    companies: List[CompanyResponse]
    count: int
