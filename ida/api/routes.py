"""
API Routes.

Endpoints for analysis mappings and inspection data.
"""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ida import __version__
from ida.models import (
    AnalysisMapping,
    BlobStorageLocation,
    InspectionData,
    PagedList,
    QueryParameters,
)
from ida.services import AnalysisMappingService, InspectionDataService
from ida.workflow import Outcome, resolve_for_inspection

from .dependencies import (
    get_analysis_mapping_service,
    get_inspection_data_service,
    get_query_parameters,
)


router = APIRouter()
analysis_mapping_router = APIRouter(prefix="/analysis-mappings", tags=["Analysis Mapping"])
inspection_data_router = APIRouter(prefix="/inspection-data", tags=["Inspection Data"])


# === Request/Response Models ===

class CreateAnalysisMappingRequest(BaseModel):
    """Request to create an analysis mapping."""

    # Absence is reported by the service as a bad request, the same as an empty value.
    tag_id: str | None = Field(None, description="Tag of the inspection point")
    inspection_description: str | None = Field(None, description="Description of the inspection")
    analysis_type: str | None = Field(None, description="Optional analysis type, e.g. 'anonymize'")


class WorkflowStatusUpdate(BaseModel):
    """Status reported by the anonymization pipeline."""

    status: str = Field(..., description="Workflow status, e.g. 'ExitSuccess'")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


def _set_pagination_header(response: Response, page: PagedList) -> None:
    response.headers["X-Pagination"] = json.dumps(page.metadata())


# === Endpoints ===

@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@analysis_mapping_router.get("", response_model=PagedList[AnalysisMapping])
async def list_analysis_mappings(
    response: Response,
    parameters: QueryParameters = Depends(get_query_parameters),
    service: AnalysisMappingService = Depends(get_analysis_mapping_service),
):
    """List all analysis mappings."""
    page = await service.get_analysis_mappings(parameters)
    _set_pagination_header(response, page)
    return page


@analysis_mapping_router.get("/id/{mapping_id}", response_model=AnalysisMapping)
async def get_analysis_mapping_by_id(
    mapping_id: str,
    service: AnalysisMappingService = Depends(get_analysis_mapping_service),
):
    """Get analysis mapping by id."""
    mapping = await service.read_by_id(mapping_id)
    if mapping is None:
        raise HTTPException(404, f"Could not find analysis mapping with id {mapping_id}")
    return mapping


@analysis_mapping_router.post("", response_model=AnalysisMapping)
async def create_analysis_mapping(
    body: CreateAnalysisMappingRequest,
    service: AnalysisMappingService = Depends(get_analysis_mapping_service),
):
    """Create a new analysis mapping."""
    return await service.create_analysis_mapping(
        body.tag_id,
        body.inspection_description,
        body.analysis_type,
    )


@analysis_mapping_router.post(
    "/id/{mapping_id}/analysis-types/{analysis_type}",
    response_model=AnalysisMapping,
)
async def add_analysis_type(
    mapping_id: str,
    analysis_type: str,
    service: AnalysisMappingService = Depends(get_analysis_mapping_service),
):
    """Add an analysis type to an existing analysis mapping."""
    return await service.add_analysis_type_to_mapping(mapping_id, analysis_type)


@inspection_data_router.get("", response_model=PagedList[InspectionData])
async def list_inspection_data(
    response: Response,
    parameters: QueryParameters = Depends(get_query_parameters),
    service: InspectionDataService = Depends(get_inspection_data_service),
):
    """List all inspection data."""
    page = await service.get_inspection_data(parameters)
    _set_pagination_header(response, page)
    return page


@inspection_data_router.get("/id/{inspection_data_id}", response_model=InspectionData)
async def get_inspection_data_by_id(
    inspection_data_id: str,
    service: InspectionDataService = Depends(get_inspection_data_service),
):
    """Get inspection data by id."""
    inspection_data = await service.read_by_id(inspection_data_id)
    if inspection_data is None:
        raise HTTPException(404, f"Could not find inspection data with id {inspection_data_id}")
    return inspection_data


@inspection_data_router.get("/{inspection_id}", response_model=InspectionData)
async def get_inspection_data_by_inspection_id(
    inspection_id: str,
    service: InspectionDataService = Depends(get_inspection_data_service),
):
    """Get inspection data by inspection id."""
    inspection_data = await service.read_by_inspection_id(inspection_id)
    if inspection_data is None:
        raise HTTPException(
            404, f"Could not find inspection data with inspection id {inspection_id}"
        )
    return inspection_data


@inspection_data_router.get(
    "/{inspection_id}/inspection-data-storage-location",
    response_model=BlobStorageLocation,
    responses={202: {}, 404: {}, 422: {}, 500: {}},
)
async def get_anonymized_storage_location(
    inspection_id: str,
    service: InspectionDataService = Depends(get_inspection_data_service),
):
    """
    Get the blob storage location of the anonymized inspection data.

    Answers 202 while the anonymization workflow has not finished and 422
    when it failed.
    """
    resolved = await resolve_for_inspection(service, inspection_id)
    if resolved.error is not None:
        raise resolved.error
    if resolved.outcome is Outcome.SUCCESS:
        return resolved.storage_location
    return JSONResponse(status_code=resolved.status_code, content={"message": resolved.message})


@inspection_data_router.put(
    "/{inspection_id}/anonymizer-workflow-status",
    response_model=InspectionData,
)
async def update_anonymizer_workflow_status(
    inspection_id: str,
    body: WorkflowStatusUpdate,
    service: InspectionDataService = Depends(get_inspection_data_service),
):
    """Record the anonymization workflow status reported by the pipeline."""
    return await service.update_anonymizer_workflow_status(inspection_id, body.status)
