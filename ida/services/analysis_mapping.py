"""
Analysis Mapping service.

Creates and extends the rules that decide which analyses run for a tag and
inspection description.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ida.errors import NotFoundError, ValidationError
from ida.models import (
    AnalysisMapping,
    AnalysisType,
    PagedList,
    QueryParameters,
    analysis_type_from_string,
)
from ida.pagination import paginate
from ida.store import AnalysisMappingRecord, new_id, store_errors
from ida.utils import get_logger

logger = get_logger(__name__)

# Inspection descriptions that imply an analysis type. Case-sensitive.
ANALYSIS_TYPES_BY_DESCRIPTION: dict[str, AnalysisType] = {
    "anonymize": AnalysisType.ANONYMIZE,
}


def inspection_description_to_analysis_type(inspection_description: str) -> AnalysisType:
    """
    Map an inspection description to the analysis type it implies.

    Raises:
        ValidationError: the description is not supported
    """
    try:
        return ANALYSIS_TYPES_BY_DESCRIPTION[inspection_description]
    except KeyError:
        raise ValidationError(
            f"Failed to parse inspection description '{inspection_description}' - not supported"
        ) from None


class AnalysisMappingService:
    """Reads and writes analysis mappings through an explicit session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_analysis_mappings(
        self,
        parameters: QueryParameters,
    ) -> PagedList[AnalysisMapping]:
        """List all analysis mappings in insertion order, one page at a time."""
        statement = select(AnalysisMappingRecord).order_by(AnalysisMappingRecord.pk)
        return await paginate(
            self.session,
            statement,
            parameters.page_number,
            parameters.page_size,
            convert=AnalysisMappingRecord.to_model,
        )

    async def read_by_id(self, mapping_id: str) -> AnalysisMapping | None:
        """Get an analysis mapping by id, or None if there is no such mapping."""
        record = await self._get_record(mapping_id)
        return record.to_model() if record is not None else None

    async def read_by_tag(
        self,
        tag_id: str,
        inspection_description: str,
    ) -> list[AnalysisMapping]:
        """Get the mappings configured for a tag and inspection description."""
        statement = (
            select(AnalysisMappingRecord)
            .where(
                AnalysisMappingRecord.tag_id == tag_id,
                AnalysisMappingRecord.inspection_description == inspection_description,
            )
            .order_by(AnalysisMappingRecord.pk)
        )
        with store_errors("read analysis mappings by tag"):
            records = (await self.session.scalars(statement)).all()
        return [record.to_model() for record in records]

    async def create_analysis_mapping(
        self,
        tag_id: str | None,
        inspection_description: str | None,
        analysis_type: str | AnalysisType | None = None,
    ) -> AnalysisMapping:
        """
        Create a new analysis mapping.

        An unrecognized or missing analysis type leaves the mapping without
        analyses; it is not an error here, unlike in
        add_analysis_type_to_mapping.

        Args:
            tag_id: Tag of the inspection point
            inspection_description: Description of the inspection
            analysis_type: Optional analysis type name, e.g. "anonymize"

        Returns:
            The stored mapping

        Raises:
            ValidationError: tag_id or inspection_description is empty
        """
        if not tag_id:
            raise ValidationError("TagId cannot be null or empty")
        if not inspection_description:
            raise ValidationError("InspectionDescription cannot be null or empty")

        mapping = AnalysisMapping(
            id=new_id(),
            tag_id=tag_id,
            inspection_description=inspection_description,
        )

        if isinstance(analysis_type, AnalysisType):
            parsed_type = analysis_type
        else:
            parsed_type = analysis_type_from_string(analysis_type)
        if parsed_type is not None:
            mapping.analyses_to_be_run.add(parsed_type)

        with store_errors("create analysis mapping"):
            self.session.add(AnalysisMappingRecord.from_model(mapping))
            await self.session.commit()

        logger.info(
            "analysis_mapping_created",
            mapping_id=mapping.id,
            tag_id=tag_id,
            analyses=sorted(t.value for t in mapping.analyses_to_be_run),
        )
        return mapping

    async def add_analysis_type_to_mapping(
        self,
        mapping_id: str,
        analysis_type: str,
    ) -> AnalysisMapping:
        """
        Add an analysis type to an existing mapping.

        Raises:
            NotFoundError: no mapping with mapping_id
            ValidationError: the type is unknown or already in the mapping
            StoreError: the write failed, including a concurrent update of the same mapping
        """
        record = await self._get_record(mapping_id)
        if record is None:
            raise NotFoundError("analysis mapping", mapping_id)

        mapping = record.to_model()
        parsed_type = analysis_type_from_string(analysis_type)
        if parsed_type is None or parsed_type in mapping.analyses_to_be_run:
            raise ValidationError(
                f"Cannot add analysis type '{analysis_type}' to analysis mapping {mapping_id}"
            )

        mapping.analyses_to_be_run.add(parsed_type)
        record.set_analysis_types(mapping.analyses_to_be_run)
        with store_errors("add analysis type to mapping"):
            await self.session.commit()

        logger.info(
            "analysis_type_added",
            mapping_id=mapping_id,
            analysis_type=parsed_type.value,
        )
        return mapping

    async def _get_record(self, mapping_id: str) -> AnalysisMappingRecord | None:
        statement = select(AnalysisMappingRecord).where(AnalysisMappingRecord.id == mapping_id)
        with store_errors("read analysis mapping"):
            return await self.session.scalar(statement)
