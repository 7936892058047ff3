"""Shared base for backend wire models (camelCase on the wire, snake_case in Python)."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class PzModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # The backend sends empty maps and lists as null; treat null as unset.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the backend's JSON shape, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Pagination(PzModel):
    count: Optional[int] = None
    order: Optional[str] = None
    page: Optional[int] = None
    per_page: Optional[int] = None
    sort_by: Optional[str] = None


class ClassType(PzModel):
    classification: str = "UNCLASSIFIED"


class NumKeyVal(PzModel):
    key: str = ""
    value: int = 0


class TxtKeyVal(PzModel):
    key: str = ""
    value: str = ""


class ResourceMetadata(PzModel):
    """Resource metadata, used for both data resources and services.

    The backend treats ``metadata`` as an opaque passthrough map.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    class_type: Optional[ClassType] = None
    version: Optional[str] = None
    metadata: Dict[str, str] = {}
    availability: Optional[str] = None
    client_cert_required: Optional[bool] = None
    contacts: Optional[str] = None
    created_by: Optional[str] = None
    created_on: Optional[str] = None
    credentials_required: Optional[bool] = None
    format: Optional[str] = None
    network_available: Optional[str] = None
    numeric_key_value_list: Optional[List[NumKeyVal]] = None
    pre_auth_required: Optional[bool] = None
    qos: Optional[str] = None
    reason: Optional[str] = None
    status_type: Optional[str] = None
    tags: Optional[str] = None
    text_key_value_list: Optional[List[TxtKeyVal]] = None
