"""
Inspection Data service.

Stores captured inspection data, schedules the analyses configured for its
inspection point, and records the status reported by the anonymization
pipeline.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ida.errors import NotFoundError, ValidationError
from ida.models import (
    AnalysisStatus,
    AnalysisType,
    BlobStorageLocation,
    InspectionData,
    PagedList,
    QueryParameters,
    WorkflowStatus,
)
from ida.pagination import paginate
from ida.store import AnalysisRecord, InspectionDataRecord, new_id, store_errors
from ida.utils import get_logger
from ida.workflow import analysis_status_for

from .analysis_mapping import AnalysisMappingService

logger = get_logger(__name__)


class InspectionDataService:
    """Reads and writes inspection data through an explicit session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_inspection_data(
        self,
        parameters: QueryParameters,
    ) -> PagedList[InspectionData]:
        """List all inspection data in insertion order, one page at a time."""
        statement = select(InspectionDataRecord).order_by(InspectionDataRecord.pk)
        return await paginate(
            self.session,
            statement,
            parameters.page_number,
            parameters.page_size,
            convert=InspectionDataRecord.to_model,
        )

    async def read_by_id(self, inspection_data_id: str) -> InspectionData | None:
        record = await self._get_record(InspectionDataRecord.id == inspection_data_id)
        return record.to_model() if record is not None else None

    async def read_by_inspection_id(self, inspection_id: str) -> InspectionData | None:
        record = await self._get_record(InspectionDataRecord.inspection_id == inspection_id)
        return record.to_model() if record is not None else None

    async def create_inspection_data(
        self,
        inspection_id: str,
        installation_code: str,
        raw_data_location: BlobStorageLocation,
        anonymized_data_location: BlobStorageLocation,
        tag_id: str | None = None,
        inspection_description: str | None = None,
    ) -> InspectionData:
        """
        Store newly captured inspection data.

        One analysis is scheduled for each analysis type configured by the
        mappings matching tag_id and inspection_description.

        Raises:
            ValidationError: inspection_id or installation_code is empty
            StoreError: the write failed, e.g. the inspection id already exists
        """
        if not inspection_id:
            raise ValidationError("InspectionId cannot be null or empty")
        if not installation_code:
            raise ValidationError("InstallationCode cannot be null or empty")

        analysis_types: set[AnalysisType] = set()
        if tag_id and inspection_description:
            mappings = await AnalysisMappingService(self.session).read_by_tag(
                tag_id, inspection_description
            )
            for mapping in mappings:
                analysis_types |= mapping.analyses_to_be_run

        now = datetime.now(timezone.utc)
        record = InspectionDataRecord(
            id=new_id(),
            inspection_id=inspection_id,
            installation_code=installation_code,
            tag_id=tag_id,
            inspection_description=inspection_description,
            raw_data_blob_storage_location=raw_data_location.model_dump(),
            anonymized_blob_storage_location=anonymized_data_location.model_dump(),
            date_created=now,
            anonymizer_workflow_status=WorkflowStatus.NOT_STARTED.value,
            analyses=[
                AnalysisRecord(
                    id=new_id(),
                    uri=raw_data_location.as_uri(),
                    source_path=raw_data_location.model_dump(),
                    destination_path=anonymized_data_location.model_dump(),
                    date_created=now,
                    type=analysis_type.value,
                    status=AnalysisStatus.NOT_STARTED.value,
                    result=None,
                )
                for analysis_type in sorted(analysis_types, key=lambda t: t.value)
            ],
        )

        with store_errors("create inspection data"):
            self.session.add(record)
            await self.session.commit()

        logger.info(
            "inspection_data_created",
            inspection_id=inspection_id,
            analyses=[analysis.type for analysis in record.analyses],
        )
        return record.to_model()

    async def update_anonymizer_workflow_status(
        self,
        inspection_id: str,
        status: str | WorkflowStatus,
    ) -> InspectionData:
        """
        Record the status reported by the anonymization pipeline.

        The value is stored as reported, so a status this version does not
        know is kept for the resolver to flag. Anonymize analyses follow a
        known status.

        Raises:
            NotFoundError: no inspection data for inspection_id
            ValidationError: status is empty
        """
        value = status.value if isinstance(status, WorkflowStatus) else status
        if not value:
            raise ValidationError("Workflow status cannot be null or empty")

        record = await self._get_record(InspectionDataRecord.inspection_id == inspection_id)
        if record is None:
            raise NotFoundError("inspection data", inspection_id, field="inspection id")

        analysis_status = analysis_status_for(value)
        if analysis_status is None:
            logger.warning(
                "unrecognized_workflow_status",
                inspection_id=inspection_id,
                status=value,
            )
        else:
            for analysis in record.analyses:
                if analysis.type == AnalysisType.ANONYMIZE.value:
                    analysis.status = analysis_status.value

        record.anonymizer_workflow_status = value
        with store_errors("update anonymizer workflow status"):
            await self.session.commit()

        logger.info(
            "anonymizer_workflow_status_updated",
            inspection_id=inspection_id,
            status=value,
        )
        return record.to_model()

    async def _get_record(self, criterion) -> InspectionDataRecord | None:
        with store_errors("read inspection data"):
            return await self.session.scalar(select(InspectionDataRecord).where(criterion))
