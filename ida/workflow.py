"""
Anonymization workflow status.

Maps the status reported by the external anonymization pipeline to the
outcome served to callers, and to the status of the scheduled analyses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ida.errors import NotFoundError, UnknownStateError
from ida.models import AnalysisStatus, BlobStorageLocation, InspectionData, WorkflowStatus
from ida.utils import get_logger

if TYPE_CHECKING:
    from ida.services.inspection_data import InspectionDataService

logger = get_logger(__name__)

NOT_STARTED_MESSAGE = "Anonymization workflow has not started."
IN_PROGRESS_MESSAGE = "Anonymization workflow is in progress."
FAILED_MESSAGE = "Anonymization workflow failed."
UNKNOWN_STATUS_MESSAGE = "Unknown workflow status."


class Outcome(str, Enum):
    """What the caller gets back for a workflow status."""

    SUCCESS = "success"
    ACCEPTED = "accepted"
    UNPROCESSABLE = "unprocessable"
    INTERNAL_ERROR = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    Outcome.SUCCESS: 200,
    Outcome.ACCEPTED: 202,
    Outcome.UNPROCESSABLE: 422,
    Outcome.INTERNAL_ERROR: 500,
}

ANALYSIS_STATUS_BY_WORKFLOW_STATUS: dict[WorkflowStatus, AnalysisStatus] = {
    WorkflowStatus.NOT_STARTED: AnalysisStatus.NOT_STARTED,
    WorkflowStatus.STARTED: AnalysisStatus.RUNNING,
    WorkflowStatus.EXIT_SUCCESS: AnalysisStatus.COMPLETED,
    WorkflowStatus.EXIT_FAILURE: AnalysisStatus.FAILED,
}


@dataclass(frozen=True)
class WorkflowStatusResponse:
    """Resolved workflow status: either a storage location or a message."""

    outcome: Outcome
    message: str | None = None
    storage_location: BlobStorageLocation | None = None
    error: UnknownStateError | None = None

    @property
    def status_code(self) -> int:
        return self.outcome.status_code


def parse_workflow_status(value: str | WorkflowStatus) -> WorkflowStatus | None:
    """Return the matching WorkflowStatus, or None for a value we do not know."""
    try:
        return WorkflowStatus(value)
    except ValueError:
        return None


def analysis_status_for(status: str | WorkflowStatus) -> AnalysisStatus | None:
    """Status an anonymize analysis should take for a workflow status, None if unknown."""
    workflow_status = parse_workflow_status(status)
    if workflow_status is None:
        return None
    return ANALYSIS_STATUS_BY_WORKFLOW_STATUS[workflow_status]


def resolve(record: InspectionData) -> WorkflowStatusResponse:
    """
    Resolve the anonymization outcome for an inspection data record.

    Only a finished workflow yields the anonymized data location; that case
    also logs the full record for audit. A status outside WorkflowStatus,
    which a newer pipeline may report, resolves to an internal error.
    """
    status = parse_workflow_status(record.anonymizer_workflow_status)

    if status is WorkflowStatus.EXIT_SUCCESS:
        logger.info(
            "inspection_data_audit",
            inspection_id=record.inspection_id,
            inspection_data=record.model_dump_json(indent=2),
        )
        return WorkflowStatusResponse(
            outcome=Outcome.SUCCESS,
            storage_location=record.anonymized_blob_storage_location,
        )
    elif status is WorkflowStatus.NOT_STARTED:
        return WorkflowStatusResponse(outcome=Outcome.ACCEPTED, message=NOT_STARTED_MESSAGE)
    elif status is WorkflowStatus.STARTED:
        return WorkflowStatusResponse(outcome=Outcome.ACCEPTED, message=IN_PROGRESS_MESSAGE)
    elif status is WorkflowStatus.EXIT_FAILURE:
        return WorkflowStatusResponse(outcome=Outcome.UNPROCESSABLE, message=FAILED_MESSAGE)
    else:
        return WorkflowStatusResponse(
            outcome=Outcome.INTERNAL_ERROR,
            message=UNKNOWN_STATUS_MESSAGE,
            error=UnknownStateError(record.anonymizer_workflow_status),
        )


async def resolve_for_inspection(
    service: InspectionDataService,
    inspection_id: str,
) -> WorkflowStatusResponse:
    """
    Look up inspection data by inspection id and resolve its workflow status.

    Raises:
        NotFoundError: no inspection data for inspection_id
    """
    record = await service.read_by_inspection_id(inspection_id)
    if record is None:
        logger.warning("inspection_data_not_found", inspection_id=inspection_id)
        raise NotFoundError("inspection data", inspection_id, field="inspection id")

    logger.info(
        "anonymizer_workflow_status",
        inspection_id=inspection_id,
        status=record.anonymizer_workflow_status,
    )
    return resolve(record)
