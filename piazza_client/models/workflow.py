"""Event, event type, trigger and alert models."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from piazza_client.models.base import Pagination, PzModel
from piazza_client.models.data import DataType


class EventType(PzModel):
    event_type_id: Optional[str] = None
    name: str
    mapping: Dict[str, Any] = {}
    created_by: Optional[str] = None
    created_on: Optional[datetime] = None


class EventTypeList(PzModel):
    type: Optional[str] = None
    data: List[EventType] = []
    pagination: Optional[Pagination] = None


class EventTypeResponse(PzModel):
    type: Optional[str] = None
    data: EventType


class Event(PzModel):
    event_id: Optional[str] = None
    event_type_id: str
    data: Dict[str, Any] = {}
    created_by: Optional[str] = None
    created_on: Optional[datetime] = None
    cron_schedule: Optional[str] = None


class EventList(PzModel):
    type: Optional[str] = None
    data: List[Event] = []
    pagination: Optional[Pagination] = None


class EventResponse(PzModel):
    type: Optional[str] = None
    data: Event


# ---------------------------------------------------------------------------
# Trigger condition: a small slice of the Elasticsearch query grammar
# ---------------------------------------------------------------------------


class CompClause(PzModel):
    lte: Optional[Any] = None
    gte: Optional[Any] = None
    format: Optional[str] = None


class QueryClause(PzModel):
    match: Optional[Dict[str, str]] = None
    range: Optional[Dict[str, CompClause]] = None


class BoolFilter(PzModel):
    filter: List[QueryClause] = []


class TriggerQuery(PzModel):
    bool_: BoolFilter = Field(default_factory=BoolFilter, alias="bool")


class QueryWrapper(PzModel):
    query: TriggerQuery = Field(default_factory=TriggerQuery)


class TriggerCondition(PzModel):
    event_type_ids: List[str] = []
    query: QueryWrapper = Field(default_factory=QueryWrapper)


class JobData(PzModel):
    service_id: Optional[str] = None
    data_inputs: Optional[Dict[str, DataType]] = None
    data_output: Optional[List[DataType]] = None


class TriggerJobType(PzModel):
    type: str = "execute-service"
    data: JobData = Field(default_factory=JobData)


class TriggerJob(PzModel):
    job_type: TriggerJobType = Field(default_factory=TriggerJobType)


class Trigger(PzModel):
    trigger_id: Optional[str] = None
    name: str
    enabled: bool = True
    condition: TriggerCondition = Field(default_factory=TriggerCondition)
    job: TriggerJob = Field(default_factory=TriggerJob)
    created_by: Optional[str] = None
    created_on: Optional[str] = None


class TriggerList(PzModel):
    type: Optional[str] = None
    data: List[Trigger] = []
    pagination: Optional[Pagination] = None


class TriggerResponse(PzModel):
    type: Optional[str] = None
    data: Trigger


class Alert(PzModel):
    alert_id: Optional[str] = None
    trigger_id: Optional[str] = None
    event_id: Optional[str] = None
    job_id: Optional[str] = None
    created_by: Optional[str] = None


class AlertList(PzModel):
    type: Optional[str] = None
    data: List[Alert] = []
    pagination: Optional[Pagination] = None
