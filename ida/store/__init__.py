"""Persistence layer module."""

from .database import Database, store_errors
from .tables import (
    AnalysisMappingRecord,
    AnalysisRecord,
    Base,
    InspectionDataRecord,
    ResultRecord,
    new_id,
)

__all__ = [
    "Database",
    "store_errors",
    # Tables
    "Base",
    "AnalysisMappingRecord",
    "AnalysisRecord",
    "InspectionDataRecord",
    "ResultRecord",
    "new_id",
]
