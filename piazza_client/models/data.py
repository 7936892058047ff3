"""Data resource models: ingest requests and file metadata."""
from __future__ import annotations

from typing import Optional

from piazza_client.models.base import PzModel, ResourceMetadata


class FileLocation(PzModel):
    """Where a hosted file lives: an S3 bucket ("s3") or a shared folder ("share")."""

    file_name: Optional[str] = None
    file_size: Optional[int] = None
    type: Optional[str] = None
    bucket_name: Optional[str] = None
    domain_name: Optional[str] = None
    file_path: Optional[str] = None


class SpatialMetadata(PzModel):
    coordinate_reference_system: Optional[str] = None
    epsg_code: Optional[int] = None
    min_x: Optional[float] = None
    min_y: Optional[float] = None
    min_z: Optional[float] = None
    max_x: Optional[float] = None
    max_y: Optional[float] = None
    max_z: Optional[float] = None
    num_features: Optional[int] = None


class DataType(PzModel):
    """Type-specific description of a data block.

    ``type`` is one of body, geojson, literal, pointcloud, postgis, raster,
    shapefile, text, urlparameter or wfs; the other fields apply only to some
    of those.
    """

    type: Optional[str] = None
    content: Optional[str] = None
    mime_type: Optional[str] = None
    location: Optional[FileLocation] = None
    database_table_name: Optional[str] = None
    geo_json_content: Optional[str] = None
    literal_type: Optional[str] = None
    database: Optional[str] = None
    table: Optional[str] = None
    feature_type: Optional[str] = None
    url: Optional[str] = None
    version: Optional[str] = None


class DataDescriptor(PzModel):
    data_id: Optional[str] = None
    data_type: DataType = DataType()
    metadata: ResourceMetadata = ResourceMetadata()
    spatial_metadata: Optional[SpatialMetadata] = None


class DataResourceResponse(PzModel):
    type: Optional[str] = None
    data: DataDescriptor


class IngestRequest(PzModel):
    type: str = "ingest"
    host: bool = True
    data: DataDescriptor
