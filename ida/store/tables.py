"""
Database tables.

SQLAlchemy models for analysis mappings, inspection data and analyses.
Each table has an integer surrogate key that fixes insertion order, and an
opaque string id exposed to callers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship

from ida.models import (
    Analysis,
    AnalysisMapping,
    AnalysisStatus,
    AnalysisType,
    BlobStorageLocation,
    InspectionData,
    Result,
    WorkflowStatus,
)

JSONType = JSON().with_variant(JSONB(), "postgresql")


def new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""
    pass


class AnalysisMappingRecord(Base):
    """Analysis types configured for a tag and inspection description."""

    __tablename__ = "analysis_mapping"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, default=new_id)
    tag_id = Column(String(200), nullable=False, index=True)
    inspection_description = Column(String(500), nullable=False)
    analyses_to_be_run = Column(JSONType, nullable=False, default=list)
    version = Column(Integer, nullable=False)

    # Optimistic concurrency: UPDATE ... WHERE version = <loaded version>
    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def from_model(cls, mapping: AnalysisMapping) -> AnalysisMappingRecord:
        return cls(
            id=mapping.id,
            tag_id=mapping.tag_id,
            inspection_description=mapping.inspection_description,
            analyses_to_be_run=_type_names(mapping.analyses_to_be_run),
        )

    def set_analysis_types(self, analysis_types: set[AnalysisType]) -> None:
        # Assign a new list so the JSON column is flagged dirty.
        self.analyses_to_be_run = _type_names(analysis_types)

    def to_model(self) -> AnalysisMapping:
        return AnalysisMapping(
            id=self.id,
            tag_id=self.tag_id,
            inspection_description=self.inspection_description,
            analyses_to_be_run={AnalysisType(name) for name in self.analyses_to_be_run or []},
        )


class ResultRecord(Base):
    """Result of a finished analysis."""

    __tablename__ = "analysis_result"
    __table_args__ = (
        CheckConstraint(
            "confidence IS NULL OR (confidence >= 0 AND confidence <= 100)",
            name="ck_analysis_result_confidence",
        ),
    )

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, default=new_id)
    analysis_pk = Column(Integer, ForeignKey("analysis.pk"), nullable=False, unique=True)
    type = Column(String(100), nullable=False)
    value = Column(Text, nullable=False)
    confidence = Column(Integer)

    def to_model(self) -> Result:
        return Result(id=self.id, type=self.type, value=self.value, confidence=self.confidence)


class AnalysisRecord(Base):
    """One analysis run scheduled for an inspection data record."""

    __tablename__ = "analysis"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, default=new_id)
    inspection_data_pk = Column(Integer, ForeignKey("inspection_data.pk"), nullable=False)
    uri = Column(Text, nullable=False)
    source_path = Column(JSONType, nullable=False)
    destination_path = Column(JSONType, nullable=False)
    date_created = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    type = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default=AnalysisStatus.NOT_STARTED.value)

    result = relationship(
        "ResultRecord",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    inspection_data = relationship("InspectionDataRecord", back_populates="analyses")

    def to_model(self) -> Analysis:
        return Analysis(
            id=self.id,
            uri=self.uri,
            source_path=BlobStorageLocation(**self.source_path),
            destination_path=BlobStorageLocation(**self.destination_path),
            date_created=self.date_created,
            type=AnalysisType(self.type),
            status=AnalysisStatus(self.status),
            result=self.result.to_model() if self.result else None,
        )


class InspectionDataRecord(Base):
    """Captured inspection data and the state of its anonymization workflow."""

    __tablename__ = "inspection_data"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, default=new_id)
    inspection_id = Column(String(200), nullable=False, unique=True)
    installation_code = Column(String(100), nullable=False)
    tag_id = Column(String(200))
    inspection_description = Column(String(500))
    raw_data_blob_storage_location = Column(JSONType, nullable=False)
    anonymized_blob_storage_location = Column(JSONType, nullable=False)
    date_created = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    # Plain string: the external pipeline may report values we do not know yet.
    anonymizer_workflow_status = Column(
        String(50), nullable=False, default=WorkflowStatus.NOT_STARTED.value
    )

    analyses = relationship(
        "AnalysisRecord",
        back_populates="inspection_data",
        lazy="selectin",
        order_by="AnalysisRecord.pk",
        cascade="all, delete-orphan",
    )

    def to_model(self) -> InspectionData:
        return InspectionData(
            id=self.id,
            inspection_id=self.inspection_id,
            installation_code=self.installation_code,
            tag_id=self.tag_id,
            inspection_description=self.inspection_description,
            raw_data_blob_storage_location=BlobStorageLocation(
                **self.raw_data_blob_storage_location
            ),
            anonymized_blob_storage_location=BlobStorageLocation(
                **self.anonymized_blob_storage_location
            ),
            date_created=self.date_created,
            anonymizer_workflow_status=self.anonymizer_workflow_status,
            analyses=[analysis.to_model() for analysis in self.analyses],
        )


def _type_names(analysis_types: set[AnalysisType]) -> list[str]:
    return sorted(analysis_type.value for analysis_type in analysis_types)
