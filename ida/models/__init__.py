"""
Data models module.

Enums, value objects and Pydantic models shared by the services and the API.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, computed_field

from config import get_settings

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisType(str, Enum):
    """Kinds of analysis that can be run against captured data."""

    ANONYMIZE = "Anonymize"


class AnalysisStatus(str, Enum):
    """Execution status of a single analysis run."""

    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


class WorkflowStatus(str, Enum):
    """Status reported by the external anonymization pipeline."""

    NOT_STARTED = "NotStarted"
    STARTED = "Started"
    EXIT_SUCCESS = "ExitSuccess"
    EXIT_FAILURE = "ExitFailure"


# Case-sensitive. New analysis types are added here.
ANALYSIS_TYPES_BY_NAME: dict[str, AnalysisType] = {
    "anonymize": AnalysisType.ANONYMIZE,
}


def analysis_type_from_string(value: str | None) -> AnalysisType | None:
    """Look up an analysis type by name, returning None when it is empty or unknown."""
    if not value:
        return None
    return ANALYSIS_TYPES_BY_NAME.get(value)


class BlobStorageLocation(BaseModel):
    """Opaque pointer to a blob in storage."""

    storage_account: str
    blob_container: str
    blob_name: str

    def as_uri(self) -> str:
        return f"{self.storage_account}/{self.blob_container}/{self.blob_name}"


class Result(BaseModel):
    """Outcome of an analysis run."""

    id: str
    type: str
    value: str
    confidence: int | None = Field(default=None, ge=0, le=100)


class Analysis(BaseModel):
    """A single analysis run against an asset."""

    id: str
    uri: str
    source_path: BlobStorageLocation
    destination_path: BlobStorageLocation
    date_created: datetime = Field(default_factory=utcnow)
    type: AnalysisType
    status: AnalysisStatus = AnalysisStatus.NOT_STARTED
    result: Result | None = None


class AnalysisMapping(BaseModel):
    """Rule binding a tag and inspection description to the analyses to run."""

    id: str
    tag_id: str = Field(..., min_length=1)
    inspection_description: str = Field(..., min_length=1)
    analyses_to_be_run: set[AnalysisType] = Field(default_factory=set)


class InspectionData(BaseModel):
    """Captured data from an inspection and its anonymization state."""

    id: str
    inspection_id: str
    installation_code: str
    tag_id: str | None = None
    inspection_description: str | None = None
    raw_data_blob_storage_location: BlobStorageLocation
    anonymized_blob_storage_location: BlobStorageLocation
    date_created: datetime = Field(default_factory=utcnow)
    # A value from a newer pipeline that WorkflowStatus lacks stays a plain str.
    anonymizer_workflow_status: WorkflowStatus | str = Field(
        default=WorkflowStatus.NOT_STARTED,
        union_mode="left_to_right",
    )
    analyses: list[Analysis] = Field(default_factory=list)


class QueryParameters(BaseModel):
    """Paging parameters supplied by the caller."""

    page_number: int = 1
    page_size: int = Field(default_factory=lambda: get_settings().pagination.default_page_size)

    def capped(self, max_page_size: int) -> QueryParameters:
        """Return parameters with the page size clamped to max_page_size."""
        if self.page_size <= max_page_size:
            return self
        return self.model_copy(update={"page_size": max_page_size})


class PagedList(BaseModel, Generic[T]):
    """One page of an ordered result set plus total-count metadata."""

    items: list[T]
    total_count: int
    page_number: int
    page_size: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @computed_field
    @property
    def has_previous(self) -> bool:
        return self.page_number > 1

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages

    def metadata(self) -> dict[str, int | bool]:
        """Paging metadata without the items, for response headers."""
        return {
            "total_count": self.total_count,
            "page_size": self.page_size,
            "current_page": self.page_number,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }
