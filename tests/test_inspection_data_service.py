"""Tests for ida/services/inspection_data.py and the Analysis/Result models."""

import pydantic
import pytest

from ida.errors import NotFoundError, StoreError, ValidationError
from ida.models import AnalysisStatus, AnalysisType, QueryParameters, Result, WorkflowStatus
from ida.services import AnalysisMappingService, InspectionDataService
from tests.conftest import blob


@pytest.fixture
def service(session):
    return InspectionDataService(session)


async def _create(service, inspection_id="inspection-1", **kwargs):
    return await service.create_inspection_data(
        inspection_id,
        "JSV",
        blob(f"{inspection_id}.jpg"),
        blob(f"{inspection_id}.jpg", container="anon"),
        **kwargs,
    )


class TestCreate:

    async def test_defaults(self, service):
        record = await _create(service)
        assert record.inspection_id == "inspection-1"
        assert record.anonymizer_workflow_status == WorkflowStatus.NOT_STARTED.value
        assert record.analyses == []

    async def test_schedules_mapped_analyses(self, service, session):
        await AnalysisMappingService(session).create_analysis_mapping(
            "TAG-001", "Camera", "anonymize"
        )
        record = await _create(service, tag_id="TAG-001", inspection_description="Camera")
        assert len(record.analyses) == 1
        analysis = record.analyses[0]
        assert analysis.type is AnalysisType.ANONYMIZE
        assert analysis.status is AnalysisStatus.NOT_STARTED
        assert analysis.source_path == blob("inspection-1.jpg")
        assert analysis.destination_path == blob("inspection-1.jpg", container="anon")
        assert analysis.uri == "idastorage/raw/inspection-1.jpg"
        assert analysis.result is None

    async def test_overlapping_mappings_schedule_each_type_once(self, service, session):
        mappings = AnalysisMappingService(session)
        await mappings.create_analysis_mapping("TAG-001", "Camera", "anonymize")
        await mappings.create_analysis_mapping("TAG-001", "Camera", "anonymize")
        record = await _create(service, tag_id="TAG-001", inspection_description="Camera")
        assert [a.type for a in record.analyses] == [AnalysisType.ANONYMIZE]

    async def test_unmapped_tag_schedules_nothing(self, service, session):
        await AnalysisMappingService(session).create_analysis_mapping(
            "TAG-001", "Camera", "anonymize"
        )
        record = await _create(service, tag_id="TAG-002", inspection_description="Camera")
        assert record.analyses == []

    @pytest.mark.parametrize("inspection_id, installation_code", [("", "JSV"), ("i-1", "")])
    async def test_missing_required_field(self, service, inspection_id, installation_code):
        with pytest.raises(ValidationError):
            await service.create_inspection_data(
                inspection_id, installation_code, blob("a"), blob("b")
            )

    async def test_duplicate_inspection_id_is_store_error(self, service, database):
        await _create(service)
        async with database.session() as other:
            with pytest.raises(StoreError):
                await _create(InspectionDataService(other))


class TestRead:

    async def test_by_id_and_inspection_id(self, service, database):
        created = await _create(service)
        async with database.session() as other:
            reader = InspectionDataService(other)
            by_id = await reader.read_by_id(created.id)
            by_inspection = await reader.read_by_inspection_id("inspection-1")
        assert by_id == by_inspection
        assert by_id.id == created.id

    async def test_missing(self, service):
        assert await service.read_by_id("nope") is None
        assert await service.read_by_inspection_id("nope") is None

    async def test_list_pages(self, service):
        for i in range(3):
            await _create(service, inspection_id=f"inspection-{i}")
        page = await service.get_inspection_data(QueryParameters(page_number=2, page_size=2))
        assert [r.inspection_id for r in page.items] == ["inspection-2"]
        assert page.total_count == 3


class TestUpdateWorkflowStatus:

    async def test_updates_status_and_analyses(self, service, session, database):
        await AnalysisMappingService(session).create_analysis_mapping(
            "TAG-001", "Camera", "anonymize"
        )
        await _create(service, tag_id="TAG-001", inspection_description="Camera")

        updated = await service.update_anonymizer_workflow_status(
            "inspection-1", WorkflowStatus.STARTED
        )
        assert updated.anonymizer_workflow_status == "Started"
        assert updated.analyses[0].status is AnalysisStatus.RUNNING

        await service.update_anonymizer_workflow_status("inspection-1", "ExitSuccess")
        async with database.session() as other:
            stored = await InspectionDataService(other).read_by_inspection_id("inspection-1")
        assert stored.anonymizer_workflow_status == "ExitSuccess"
        assert stored.analyses[0].status is AnalysisStatus.COMPLETED

    async def test_unknown_status_is_stored_verbatim(self, service):
        await _create(service)
        await service.update_anonymizer_workflow_status("inspection-1", "Started")
        updated = await service.update_anonymizer_workflow_status("inspection-1", "Paused")
        assert updated.anonymizer_workflow_status == "Paused"

    async def test_unknown_status_leaves_analyses(self, service, session):
        await AnalysisMappingService(session).create_analysis_mapping(
            "TAG-001", "Camera", "anonymize"
        )
        await _create(service, tag_id="TAG-001", inspection_description="Camera")
        await service.update_anonymizer_workflow_status("inspection-1", "ExitFailure")
        updated = await service.update_anonymizer_workflow_status("inspection-1", "Paused")
        assert updated.analyses[0].status is AnalysisStatus.FAILED

    async def test_missing_record(self, service):
        with pytest.raises(NotFoundError):
            await service.update_anonymizer_workflow_status("nope", "Started")

    async def test_empty_status(self, service):
        await _create(service)
        with pytest.raises(ValidationError):
            await service.update_anonymizer_workflow_status("inspection-1", "")


class TestResultModel:

    @pytest.mark.parametrize("confidence", [0, 55, 100, None])
    def test_confidence_in_range(self, confidence):
        result = Result(id="r", type="anonymize", value="ok", confidence=confidence)
        assert result.confidence == confidence

    @pytest.mark.parametrize("confidence", [-1, 101])
    def test_confidence_out_of_range(self, confidence):
        with pytest.raises(pydantic.ValidationError):
            Result(id="r", type="anonymize", value="ok", confidence=confidence)
