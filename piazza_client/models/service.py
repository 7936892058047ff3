"""Registered service models and the pzsvc-exec response."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from piazza_client.models.base import Pagination, PzModel, ResourceMetadata


class Service(PzModel):
    service_id: Optional[str] = None
    url: Optional[str] = None
    contract_url: Optional[str] = None
    method: Optional[str] = None
    heartbeat: Optional[int] = None
    timeout: Optional[int] = None
    resource_metadata: ResourceMetadata = ResourceMetadata()


class ServiceList(PzModel):
    type: Optional[str] = None
    data: List[Service] = []
    pagination: Optional[Pagination] = None


class ServiceResponse(PzModel):
    type: Optional[str] = None
    data: Service = Service()


class ExecResult(BaseModel):
    """Response body of a pzsvc-exec call (PascalCase on the wire)."""

    in_files: Dict[str, str] = Field(default_factory=dict, alias="InFiles")
    out_files: Dict[str, str] = Field(default_factory=dict, alias="OutFiles")
    prog_return: str = Field(default="", alias="ProgReturn")
    errors: List[str] = Field(default_factory=list, alias="Errors")

    @field_validator("in_files", "out_files", mode="before")
    @classmethod
    def null_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("errors", mode="before")
    @classmethod
    def null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("prog_return", mode="before")
    @classmethod
    def null_text(cls, value: Any) -> Any:
        return "" if value is None else value
