"""Pydantic schemas for monitoring configs and the active companies view."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MonitoringConfigSave(BaseModel):
    company_id: Optional[int] = Field(None, description="Company to configure (required)")
    days_back: Optional[int] = Field(None, description="Look-back window in days (default 7)")
    max_products: Optional[int] = Field(None, description="Products fetched per check (default 50)")
    check_frequency: Optional[str] = Field(None, description="Check frequency (default 'weekly')")
    is_enabled: Optional[bool] = Field(None, description="Monitoring switch (default true)")


class MonitoringConfigResponse(BaseModel):
    id: int
    company_id: int
    company_name: Optional[str] = None
    days_back: int
    max_products: int
    check_frequency: str
    is_enabled: bool
    last_monitored: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ActiveCompanyResponse(BaseModel):
    id: int
    name: str
    url: Optional[str] = None
    domain: Optional[str] = None
    industry: Optional[str] = None
    description: Optional[str] = None
    days_back: int
    max_products: int
    check_frequency: str
    is_enabled: bool
    last_monitored: Optional[datetime] = None
