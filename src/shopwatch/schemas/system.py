"""Pydantic schemas for stats, setup and health endpoints."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    message: str


class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_companies: int = Field(..., alias="totalCompanies")
    total_products: int = Field(..., alias="totalProducts")
    new_products: int = Field(..., alias="newProducts")
    active_configs: int = Field(..., alias="activeConfigs")


class SetupDatabaseResponse(BaseModel):
    message: str
    tables: Dict[str, str] = Field(..., description="created or exists, per table")
    indexes: str
    views: Dict[str, str]
    repairs: List[str] = Field(default_factory=list, description="Columns/constraints added to existing tables")
