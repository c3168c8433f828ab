"""Tests for ida/services/analysis_mapping.py."""

import pytest
from sqlalchemy import select

from ida.errors import NotFoundError, StoreError, ValidationError
from ida.models import AnalysisType, QueryParameters, analysis_type_from_string
from ida.services import AnalysisMappingService, inspection_description_to_analysis_type
from ida.store import AnalysisMappingRecord


@pytest.fixture
def service(session):
    return AnalysisMappingService(session)


class TestCreate:

    async def test_without_type_has_no_analyses(self, service):
        mapping = await service.create_analysis_mapping("TAG-001", "Visual inspection")
        assert mapping.tag_id == "TAG-001"
        assert mapping.inspection_description == "Visual inspection"
        assert mapping.analyses_to_be_run == set()
        assert mapping.id

    async def test_with_recognized_type(self, service):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera", "anonymize")
        assert mapping.analyses_to_be_run == {AnalysisType.ANONYMIZE}

    async def test_with_enum_type(self, service):
        mapping = await service.create_analysis_mapping(
            "TAG-001", "Camera", AnalysisType.ANONYMIZE
        )
        assert mapping.analyses_to_be_run == {AnalysisType.ANONYMIZE}

    @pytest.mark.parametrize("analysis_type", ["Anonymize", "ANONYMIZE", "blur", ""])
    async def test_unrecognized_type_is_ignored(self, service, analysis_type):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera", analysis_type)
        assert mapping.analyses_to_be_run == set()

    async def test_is_persisted(self, service, database):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera", "anonymize")
        async with database.session() as other:
            stored = await AnalysisMappingService(other).read_by_id(mapping.id)
        assert stored == mapping

    async def test_ids_are_unique(self, service):
        first = await service.create_analysis_mapping("TAG-001", "Camera")
        second = await service.create_analysis_mapping("TAG-001", "Camera")
        assert first.id != second.id

    @pytest.mark.parametrize(
        "tag_id, description",
        [("", "x"), ("x", ""), (None, "x"), ("x", None)],
    )
    async def test_missing_required_field(self, service, tag_id, description):
        with pytest.raises(ValidationError):
            await service.create_analysis_mapping(tag_id, description)

    async def test_failed_create_stores_nothing(self, service):
        with pytest.raises(ValidationError):
            await service.create_analysis_mapping("", "x", "anonymize")
        page = await service.get_analysis_mappings(QueryParameters())
        assert page.total_count == 0


class TestReadById:

    async def test_missing_returns_none(self, service):
        assert await service.read_by_id("does-not-exist") is None

    async def test_repeated_reads_are_equal(self, service):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera", "anonymize")
        first = await service.read_by_id(mapping.id)
        second = await service.read_by_id(mapping.id)
        assert first == second == mapping


class TestReadByTag:

    async def test_filters_on_tag_and_description(self, service):
        wanted = await service.create_analysis_mapping("TAG-001", "Camera", "anonymize")
        await service.create_analysis_mapping("TAG-001", "Thermal")
        await service.create_analysis_mapping("TAG-002", "Camera")
        mappings = await service.read_by_tag("TAG-001", "Camera")
        assert mappings == [wanted]

    async def test_no_match(self, service):
        assert await service.read_by_tag("TAG-404", "Camera") == []


class TestAddAnalysisType:

    async def test_adds_type(self, service, database):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera")
        updated = await service.add_analysis_type_to_mapping(mapping.id, "anonymize")
        assert updated.analyses_to_be_run == {AnalysisType.ANONYMIZE}
        async with database.session() as other:
            stored = await AnalysisMappingService(other).read_by_id(mapping.id)
        assert stored.analyses_to_be_run == {AnalysisType.ANONYMIZE}

    async def test_duplicate_rejected_and_state_unchanged(self, service, database):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera", "anonymize")
        before = await service.read_by_id(mapping.id)
        with pytest.raises(ValidationError):
            await service.add_analysis_type_to_mapping(mapping.id, "anonymize")
        async with database.session() as other:
            after = await AnalysisMappingService(other).read_by_id(mapping.id)
        assert after == before

    @pytest.mark.parametrize("analysis_type", ["Anonymize", "segment", ""])
    async def test_unknown_type_rejected(self, service, analysis_type):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera")
        with pytest.raises(ValidationError):
            await service.add_analysis_type_to_mapping(mapping.id, analysis_type)
        assert (await service.read_by_id(mapping.id)).analyses_to_be_run == set()

    async def test_unknown_mapping(self, service):
        with pytest.raises(NotFoundError):
            await service.add_analysis_type_to_mapping("does-not-exist", "anonymize")

    async def test_concurrent_update_is_detected(self, service, database):
        mapping = await service.create_analysis_mapping("TAG-001", "Camera")

        async with database.session() as stale_session:
            stale = AnalysisMappingService(stale_session)
            # Keep the loaded record alive so the session's identity map holds
            # the old version when the other writer commits.
            held = await stale_session.scalar(
                select(AnalysisMappingRecord).where(AnalysisMappingRecord.id == mapping.id)
            )
            assert held.analyses_to_be_run == []

            await service.add_analysis_type_to_mapping(mapping.id, "anonymize")

            with pytest.raises(StoreError):
                await stale.add_analysis_type_to_mapping(mapping.id, "anonymize")


class TestList:

    async def test_insertion_order(self, service):
        created = [
            await service.create_analysis_mapping(f"TAG-{i}", "Camera") for i in range(5)
        ]
        page = await service.get_analysis_mappings(QueryParameters(page_number=1, page_size=3))
        assert page.items == created[:3]
        assert page.total_count == 5
        assert page.total_pages == 2

    async def test_bad_page_number(self, service):
        with pytest.raises(ValidationError):
            await service.get_analysis_mappings(QueryParameters(page_number=0))


class TestTypeLookups:

    def test_description_to_type(self):
        assert inspection_description_to_analysis_type("anonymize") is AnalysisType.ANONYMIZE

    @pytest.mark.parametrize("description", ["Anonymize", "thermal", ""])
    def test_unsupported_description(self, description):
        with pytest.raises(ValidationError, match="not supported"):
            inspection_description_to_analysis_type(description)

    def test_type_from_string(self):
        assert analysis_type_from_string("anonymize") is AnalysisType.ANONYMIZE
        assert analysis_type_from_string("Anonymize") is None
        assert analysis_type_from_string(None) is None
