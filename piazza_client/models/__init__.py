from .base import ClassType, Pagination, PzModel, ResourceMetadata
from .data import (
    DataDescriptor,
    DataResourceResponse,
    DataType,
    FileLocation,
    IngestRequest,
    SpatialMetadata,
)
from .job import (
    DataResult,
    Deployment,
    DeploymentGroup,
    DeploymentGroupResponse,
    JobInitResponse,
    JobProgress,
    JobStatus,
    JobStatusEnvelope,
    JobStatusRecord,
)
from .service import ExecResult, Service, ServiceList, ServiceResponse
from .workflow import (
    Alert,
    AlertList,
    CompClause,
    Event,
    EventList,
    EventResponse,
    EventType,
    EventTypeList,
    EventTypeResponse,
    JobData,
    QueryClause,
    Trigger,
    TriggerCondition,
    TriggerJob,
    TriggerList,
    TriggerResponse,
)

__all__ = [
    "ClassType",
    "Pagination",
    "PzModel",
    "ResourceMetadata",
    "DataDescriptor",
    "DataResourceResponse",
    "DataType",
    "FileLocation",
    "IngestRequest",
    "SpatialMetadata",
    "DataResult",
    "Deployment",
    "DeploymentGroup",
    "DeploymentGroupResponse",
    "JobInitResponse",
    "JobProgress",
    "JobStatus",
    "JobStatusEnvelope",
    "JobStatusRecord",
    "ExecResult",
    "Service",
    "ServiceList",
    "ServiceResponse",
    "Alert",
    "AlertList",
    "CompClause",
    "Event",
    "EventList",
    "EventResponse",
    "EventType",
    "EventTypeList",
    "EventTypeResponse",
    "JobData",
    "QueryClause",
    "Trigger",
    "TriggerCondition",
    "TriggerJob",
    "TriggerList",
    "TriggerResponse",
]
