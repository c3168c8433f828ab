"""Request-scoped dependencies."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from ida.models import QueryParameters
from ida.services import AnalysisMappingService, InspectionDataService
from ida.store import Database


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_session(database: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    async with database.session() as session:
        yield session


def get_query_parameters(
    page_number: int = Query(1, description="1-based page number"),
    page_size: int | None = Query(None, description="Items per page"),
    settings: Settings = Depends(get_app_settings),
) -> QueryParameters:
    """Paging parameters with the configured default and cap applied."""
    pagination = settings.pagination
    if page_size is None:
        page_size = pagination.default_page_size
    parameters = QueryParameters(page_number=page_number, page_size=page_size)
    return parameters.capped(pagination.max_page_size)


def get_analysis_mapping_service(
    session: AsyncSession = Depends(get_session),
) -> AnalysisMappingService:
    return AnalysisMappingService(session)


def get_inspection_data_service(
    session: AsyncSession = Depends(get_session),
) -> InspectionDataService:
    return InspectionDataService(session)
