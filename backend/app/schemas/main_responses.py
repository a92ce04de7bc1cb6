"""Responses for the root, health and metrics endpoints."""

from typing import Dict

from pydantic import Field

from ._strict_base import StrictModel


class RootResponse(StrictModel):
    message: str
    version: str
    docs: str


class HealthResponse(StrictModel):
    """Response for health check endpoint."""

    status: str = Field(description="Health status")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    checks: Dict[str, bool] = Field(default_factory=dict)
